"""
User interface modules for ModredIP.

Modules:
    api_client: requests client for the backend API
    streamlit_app: Streamlit dApp UI
"""
