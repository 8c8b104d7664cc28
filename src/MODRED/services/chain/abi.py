"""ABI fragments of the ModredIP contract used by the backend."""

# keccak256("Transfer(address,address,uint256)")
TRANSFER_EVENT_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _input(name: str, type_: str) -> dict:
    return {"internalType": type_, "name": name, "type": type_}


def _output(type_: str, name: str = "") -> dict:
    return {"internalType": type_, "name": name, "type": type_}


MODRED_IP_ABI = [
    {
        "inputs": [
            _input("ipHash", "string"),
            _input("metadata", "string"),
            _input("isEncrypted", "bool"),
        ],
        "name": "registerIP",
        "outputs": [_output("uint256")],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            _input("tokenId", "uint256"),
            _input("royaltyPercentage", "uint256"),
            _input("duration", "uint256"),
            _input("commercialUse", "bool"),
            _input("terms", "string"),
        ],
        "name": "mintLicense",
        "outputs": [_output("uint256")],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [_input("tokenId", "uint256")],
        "name": "payRevenue",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [_input("tokenId", "uint256")],
        "name": "claimRoyalties",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [_input("tokenId", "uint256")],
        "name": "getIPAsset",
        "outputs": [
            _output("address", "owner"),
            _output("string", "ipHash"),
            _output("string", "metadata"),
            _output("bool", "isEncrypted"),
            _output("bool", "isDisputed"),
            _output("uint256", "registrationDate"),
            _output("uint256", "totalRevenue"),
            _output("uint256", "royaltyTokens"),
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_input("licenseId", "uint256")],
        "name": "getLicense",
        "outputs": [
            _output("address", "licensee"),
            _output("uint256", "tokenId"),
            _output("uint256", "royaltyPercentage"),
            _output("uint256", "duration"),
            _output("uint256", "startDate"),
            _output("bool", "isActive"),
            _output("bool", "commercialUse"),
            _output("string", "terms"),
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "nextTokenId",
        "outputs": [_output("uint256")],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "nextLicenseId",
        "outputs": [_output("uint256")],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "address", "name": "from", "type": "address"},
            {"indexed": True, "internalType": "address", "name": "to", "type": "address"},
            {"indexed": True, "internalType": "uint256", "name": "tokenId", "type": "uint256"},
        ],
        "name": "Transfer",
        "type": "event",
    },
]
