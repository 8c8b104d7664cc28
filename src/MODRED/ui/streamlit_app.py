"""
Streamlit web interface for the ModredIP backend.

This module provides the dApp UI: register IP assets, mint licenses, pay
revenue, claim royalties, browse on-chain records and check Yakoa
infringement status. All chain work goes through the backend API.

Module Input:
    - File uploads via Streamlit file_uploader
    - User interactions via Streamlit widgets
    - Backend URL and contract address from settings

Module Output:
    - Interactive web UI
    - Transaction links on the Etherlink explorer
    - Tables of IP assets and licenses

Pages:
    - Register IP: Upload to IPFS, pin metadata, register on Etherlink
    - Mint License: License terms builder
    - Pay Revenue: Send XTZ to an IP asset
    - Claim Royalties: Claim accrued royalties
    - Dashboard: IP assets and licenses
    - Infringement: Yakoa infringement status
"""

from typing import Any, Dict, List

import pandas as pd
import streamlit as st

from MODRED.core.exceptions import BackendError
from MODRED.core.logging_config import get_logger, setup_root_logger
from MODRED.core.settings import settings
from MODRED.ui.api_client import (
    DEFAULT_LICENSE_DURATION,
    DEFAULT_LICENSE_TERMS,
    DEFAULT_PAYMENT_AMOUNT,
    DEFAULT_ROYALTY_PERCENTAGE,
    BackendClient,
    build_license_terms,
    build_registration_metadata,
    royalty_percent,
)

# Setup logging
setup_root_logger()
logger = get_logger(__name__)

# Page configuration
st.set_page_config(
    page_title="ModredIP",
    page_icon="🛡️",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def initialize_client() -> BackendClient:
    """Create and cache the backend client."""
    client = BackendClient()
    logger.info(f"UI using backend at {client.base_url}")
    return client


def render_tx_result(result: Dict[str, Any]):
    """Render a transaction result with its explorer link."""
    data = result.get("data") or result.get("etherlink") or result
    st.success(f"✅ {result.get('message', 'Transaction confirmed')}")

    col_a, col_b = st.columns(2)
    with col_a:
        st.write(f"**Tx Hash:** `{data.get('txHash')}`")
        st.write(f"**Block:** `{data.get('blockNumber')}`")
    with col_b:
        if data.get("ipAssetId") is not None:
            st.write(f"**IP Asset ID:** `{data.get('ipAssetId')}`")
        if data.get("explorerUrl"):
            st.markdown(f"[View on explorer]({data['explorerUrl']})")


def assets_frame(assets: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for asset in assets:
        meta = asset.get("parsedMetadata") or {}
        rows.append({
            "Token ID": asset.get("tokenId"),
            "Name": meta.get("name", "Unknown"),
            "Owner": asset.get("owner"),
            "IP Hash": asset.get("ipHash"),
            "Encrypted": asset.get("isEncrypted"),
            "Disputed": asset.get("isDisputed"),
            "Total Revenue (wei)": str(asset.get("totalRevenue")),
            "Royalty Tokens": str(asset.get("royaltyTokens")),
        })
    return pd.DataFrame(rows)


def licenses_frame(licenses: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = [{
        "License ID": lic.get("licenseId"),
        "Token ID": lic.get("tokenId"),
        "Licensee": lic.get("licensee"),
        "Royalty %": royalty_percent(lic.get("royaltyPercentage")),
        "Duration (s)": lic.get("duration"),
        "Active": lic.get("isActive"),
        "Commercial": lic.get("commercialUse"),
    } for lic in licenses]
    return pd.DataFrame(rows)


def main():
    """Main Streamlit application entry point."""

    client = initialize_client()

    st.title("🛡️ ModredIP")
    st.markdown("Register, license and monetise intellectual property on Etherlink")

    # Sidebar - Configuration & Status
    with st.sidebar:
        st.header("⚙️ Configuration")

        st.subheader("Backend")
        st.info(f"**URL:** `{client.base_url}`")
        if client.is_available():
            st.success("✅ Backend Connected")
        else:
            st.error("❌ Backend Unreachable")

        st.subheader("Contract")
        contract_address = st.text_input(
            "ModredIP contract address",
            value=settings.modred_ip_contract or "",
            key="contract_address"
        )

        st.divider()
        st.caption(f"**Network:** Etherlink testnet (chain {settings.chain_id})")
        st.caption(f"**Explorer:** {settings.block_explorer_url}")

    tab1, tab2, tab3, tab4, tab5, tab6 = st.tabs([
        "📝 Register IP",
        "📜 Mint License",
        "💸 Pay Revenue",
        "💰 Claim Royalties",
        "📊 Dashboard",
        "🔍 Infringement"
    ])

    # Tab 1: Register IP
    with tab1:
        st.header("Register IP Asset")
        st.markdown("Upload a file to IPFS, pin its metadata and register it on Etherlink.")

        uploaded_file = st.file_uploader("Choose a file", key="ip_file")
        ip_name = st.text_input("Name *", key="ip_name")
        ip_description = st.text_area("Description", key="ip_description")
        creator = st.text_input("Creator address", key="ip_creator")
        is_encrypted = st.checkbox("Content is encrypted", key="ip_encrypted")

        if st.button("🚀 Register", type="primary", disabled=not (uploaded_file and ip_name.strip())):
            if not contract_address:
                st.error("Set the ModredIP contract address in the sidebar")
            else:
                try:
                    with st.spinner("Uploading file to IPFS..."):
                        pinned = client.upload_file(
                            uploaded_file.getvalue(), uploaded_file.name, uploaded_file.type
                        )
                    ip_hash = pinned["url"]
                    st.write(f"**IP Hash:** `{ip_hash}`")

                    with st.spinner("Pinning metadata..."):
                        nft = client.upload_metadata(ip_hash, ip_name, ip_description, is_encrypted)

                    metadata = build_registration_metadata(
                        name=ip_name,
                        description=ip_description,
                        image=nft["uri"],
                        creator=creator,
                        ip_hash=ip_hash,
                        contract_address=contract_address,
                        file_name=uploaded_file.name,
                        file_type=uploaded_file.type,
                        file_size=uploaded_file.size,
                    )

                    with st.spinner("Registering on Etherlink..."):
                        result = client.register_ip(ip_hash, metadata, is_encrypted, contract_address)

                    render_tx_result(result)
                    if result.get("yakoa"):
                        with st.expander("Yakoa response"):
                            st.json(result["yakoa"])

                except BackendError as e:
                    logger.error(f"Registration failed: {e.message}")
                    st.error(f"❌ {e.message}")

    # Tab 2: Mint License
    with tab2:
        st.header("Mint License")

        col1, col2 = st.columns(2)
        with col1:
            license_token_id = st.number_input("IP Asset ID", min_value=1, step=1, key="license_token")
            royalty_percentage = st.number_input(
                "Royalty %", min_value=1, max_value=100,
                value=DEFAULT_ROYALTY_PERCENTAGE, key="license_royalty"
            )
            duration = st.number_input(
                "Duration (seconds)", min_value=1,
                value=DEFAULT_LICENSE_DURATION, key="license_duration"
            )
            commercial_use = st.checkbox("Commercial use", value=True, key="license_commercial")

        with col2:
            commercial_attribution = st.checkbox(
                "Commercial attribution",
                value=DEFAULT_LICENSE_TERMS["commercialAttribution"]
            )
            derivatives_allowed = st.checkbox(
                "Derivatives allowed", value=DEFAULT_LICENSE_TERMS["derivativesAllowed"]
            )
            derivatives_attribution = st.checkbox(
                "Derivatives attribution", value=DEFAULT_LICENSE_TERMS["derivativesAttribution"]
            )
            derivatives_approval = st.checkbox(
                "Derivatives require approval", value=DEFAULT_LICENSE_TERMS["derivativesApproval"]
            )
            derivatives_reciprocal = st.checkbox(
                "Derivatives reciprocal", value=DEFAULT_LICENSE_TERMS["derivativesReciprocal"]
            )
            commercial_rev_share = st.number_input(
                "Commercial revenue share", min_value=0,
                value=DEFAULT_LICENSE_TERMS["commercialRevShare"]
            )

        terms = build_license_terms(
            commercialAttribution=commercial_attribution,
            commercialRevShare=int(commercial_rev_share),
            derivativesAllowed=derivatives_allowed,
            derivativesAttribution=derivatives_attribution,
            derivativesApproval=derivatives_approval,
            derivativesReciprocal=derivatives_reciprocal,
        )
        with st.expander("License terms JSON"):
            st.code(terms, language="json")

        if st.button("📜 Mint License", type="primary"):
            try:
                with st.spinner("Minting license..."):
                    result = client.mint_license(
                        int(license_token_id), int(royalty_percentage), int(duration),
                        commercial_use, terms, contract_address
                    )
                render_tx_result(result)
            except BackendError as e:
                st.error(f"❌ {e.message}")

    # Tab 3: Pay Revenue
    with tab3:
        st.header("Pay Revenue")
        pay_token_id = st.number_input("IP Asset ID", min_value=1, step=1, key="pay_token")
        amount = st.text_input("Amount (XTZ)", value=DEFAULT_PAYMENT_AMOUNT, key="pay_amount")

        if st.button("💸 Pay", type="primary"):
            try:
                with st.spinner("Sending payment..."):
                    result = client.pay_revenue(int(pay_token_id), amount, contract_address or None)
                render_tx_result(result)
            except BackendError as e:
                st.error(f"❌ {e.message}")

    # Tab 4: Claim Royalties
    with tab4:
        st.header("Claim Royalties")
        claim_token_id = st.number_input("IP Asset ID", min_value=1, step=1, key="claim_token")

        if st.button("💰 Claim", type="primary"):
            try:
                with st.spinner("Claiming royalties..."):
                    result = client.claim_royalties(int(claim_token_id), contract_address or None)
                render_tx_result(result)
            except BackendError as e:
                st.error(f"❌ {e.message}")

    # Tab 5: Dashboard
    with tab5:
        st.header("IP Assets & Licenses")

        if st.button("🔄 Refresh"):
            st.rerun()

        try:
            assets = client.list_assets(contract_address or None)
            licenses = client.list_licenses(contract_address or None)
        except BackendError as e:
            st.error(f"❌ Failed to load contract data: {e.message}")
        else:
            col1, col2 = st.columns(2)
            col1.metric("IP Assets", len(assets))
            col2.metric("Licenses", len(licenses))

            st.subheader("IP Assets")
            if assets:
                st.dataframe(assets_frame(assets), use_container_width=True, hide_index=True)
                for asset in assets:
                    meta = asset.get("parsedMetadata") or {}
                    with st.expander(f"#{asset['tokenId']} {meta.get('name', 'Unknown')}"):
                        st.write(meta.get("description", ""))
                        if asset.get("gatewayUrl"):
                            st.markdown(f"[Open content]({asset['gatewayUrl']})")
                        st.json(meta)
            else:
                st.info("No IP assets registered yet")

            st.subheader("Licenses")
            if licenses:
                st.dataframe(licenses_frame(licenses), use_container_width=True, hide_index=True)
            else:
                st.info("No licenses minted yet")

    # Tab 6: Infringement
    with tab6:
        st.header("Infringement Status")
        st.markdown("Check Yakoa's infringement results for a registered IP asset.")

        infringement_token = st.number_input("IP Asset ID", min_value=1, step=1, key="infr_token")

        if st.button("🔍 Check", type="primary"):
            if not contract_address:
                st.error("Set the ModredIP contract address in the sidebar")
            else:
                try:
                    with st.spinner("Querying Yakoa..."):
                        status = client.get_infringement_by_contract(
                            contract_address, int(infringement_token)
                        )
                except BackendError as e:
                    st.error(f"❌ {e.message}")
                else:
                    col1, col2, col3 = st.columns(3)
                    col1.metric("Status", status["status"])
                    col2.metric("Result", status["result"])
                    col3.metric("Infringements", status["totalInfringements"])
                    st.caption(f"Last checked: {status.get('lastChecked') or 'never'}")

                    if status["inNetworkInfringements"]:
                        st.subheader("In-network")
                        st.dataframe(pd.DataFrame(status["inNetworkInfringements"]), use_container_width=True)
                    if status["externalInfringements"]:
                        st.subheader("External")
                        st.dataframe(pd.DataFrame(status["externalInfringements"]), use_container_width=True)


if __name__ == "__main__":
    main()
