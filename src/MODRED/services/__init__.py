"""
Integration services for the ModredIP backend.

This package contains the clients for the external systems the backend
talks to, and the workflows that combine them.

Modules:
    chain: ModredIP contract client over web3
    ipfs: Pinata pinning client and gateway helpers
    yakoa: Yakoa token registration and infringement lookups
    registration: Register, license and royalty workflows
"""
