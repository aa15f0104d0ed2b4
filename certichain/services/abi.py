# certichain/services/abi.py
# ABI fragments of the deployed InstitutionRegistry and CertificateNFT contracts.

INSTITUTION_REGISTRY_ABI = [
    {
        "name": "registerInstitution",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_institution", "type": "address"},
            {"name": "_name", "type": "string"},
        ],
        "outputs": [],
    },
    {
        "name": "removeInstitution",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_institution", "type": "address"}],
        "outputs": [],
    },
    {
        "name": "isAuthorized",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "_institution", "type": "address"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "owner",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "name": "getAllInstitutions",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address[]"}],
    },
    {
        "name": "InstitutionRegistered",
        "type": "event",
        "anonymous": False,
        "inputs": [
            {"name": "institution", "type": "address", "indexed": True},
            {"name": "name", "type": "string", "indexed": False},
        ],
    },
    {
        "name": "InstitutionRemoved",
        "type": "event",
        "anonymous": False,
        "inputs": [{"name": "institution", "type": "address", "indexed": True}],
    },
]

CERTIFICATE_NFT_ABI = [
    {
        "name": "issueCertificate",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "student", "type": "address"},
            {"name": "nameHash", "type": "bytes32"},
            {"name": "emailHash", "type": "bytes32"},
            {"name": "course", "type": "string"},
            {"name": "enrollmentDate", "type": "uint256"},
            {"name": "ipfsHash", "type": "string"},
            {"name": "dataHash", "type": "bytes32"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "revokeCertificate",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "tokenId", "type": "uint256"},
            {"name": "reason", "type": "string"},
        ],
        "outputs": [],
    },
    {
        "name": "getCertificate",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "issuer", "type": "address"},
                    {"name": "studentNameHash", "type": "bytes32"},
                    {"name": "studentEmailHash", "type": "bytes32"},
                    {"name": "course", "type": "string"},
                    {"name": "issueDate", "type": "uint256"},
                    {"name": "enrollmentDate", "type": "uint256"},
                    {"name": "isValid", "type": "bool"},
                    {"name": "ipfsHash", "type": "string"},
                    {"name": "revokeReason", "type": "string"},
                ],
            }
        ],
    },
    {
        "name": "getCertificateByHash",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "dataHash", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "ownerOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "name": "CertificateIssued",
        "type": "event",
        "anonymous": False,
        "inputs": [
            {"name": "tokenId", "type": "uint256", "indexed": True},
            {"name": "issuer", "type": "address", "indexed": True},
            {"name": "student", "type": "address", "indexed": True},
            {"name": "dataHash", "type": "bytes32", "indexed": False},
        ],
    },
    {
        "name": "CertificateRevoked",
        "type": "event",
        "anonymous": False,
        "inputs": [
            {"name": "tokenId", "type": "uint256", "indexed": True},
            {"name": "reason", "type": "string", "indexed": False},
        ],
    },
]
