from __future__ import annotations

from typing import Any

# Minimal ABIs for Polygon PoS staking (StakeManager / ValidatorShare) and the
# root-chain bridge (RootChainManager / checkpoint RootChain). Only the functions
# the adapter calls are listed; selectors must match the deployed contracts.

STAKE_MANAGER_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "getValidatorContract",
        "stateMutability": "view",
        "inputs": [{"name": "validatorId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "validatorStake",
        "stateMutability": "view",
        "inputs": [{"name": "validatorId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "delegatedAmount",
        "stateMutability": "view",
        "inputs": [{"name": "validatorId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "epoch",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "validators",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "uint256"}],
        "outputs": [
            {"name": "amount", "type": "uint256"},
            {"name": "reward", "type": "uint256"},
            {"name": "activationEpoch", "type": "uint256"},
            {"name": "deactivationEpoch", "type": "uint256"},
            {"name": "jailTime", "type": "uint256"},
            {"name": "signer", "type": "address"},
            {"name": "contractAddress", "type": "address"},
            {"name": "status", "type": "uint8"},
            {"name": "commissionRate", "type": "uint256"},
            {"name": "lastCommissionUpdate", "type": "uint256"},
            {"name": "delegatorsReward", "type": "uint256"},
            {"name": "delegatedAmount", "type": "uint256"},
            {"name": "initialRewardPerStake", "type": "uint256"},
        ],
    },
]

VALIDATOR_SHARE_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "buyVoucher",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_amount", "type": "uint256"},
            {"name": "_minSharesToMint", "type": "uint256"},
        ],
        "outputs": [{"name": "amountToDeposit", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "sellVoucher",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "claimAmount", "type": "uint256"},
            {"name": "maximumSharesToBurn", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "withdrawRewards",
        "stateMutability": "nonpayable",
        "inputs": [],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "exchangeRate",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "getTotalStake",
        "stateMutability": "view",
        "inputs": [{"name": "user", "type": "address"}],
        "outputs": [
            {"name": "", "type": "uint256"},
            {"name": "", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "getLiquidRewards",
        "stateMutability": "view",
        "inputs": [{"name": "user", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "owner",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]

ROOT_CHAIN_MANAGER_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "depositFor",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "user", "type": "address"},
            {"name": "rootToken", "type": "address"},
            {"name": "depositData", "type": "bytes"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "checkpointManagerAddress",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]

CHECKPOINT_MANAGER_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "currentHeaderBlock",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "headerBlocks",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "uint256"}],
        "outputs": [
            {"name": "root", "type": "bytes32"},
            {"name": "start", "type": "uint256"},
            {"name": "end", "type": "uint256"},
            {"name": "createdAt", "type": "uint256"},
            {"name": "proposer", "type": "address"},
        ],
    },
]
