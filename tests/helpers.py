from eth_account import Account
from eth_account.messages import encode_defunct

# Well-known development keys (Hardhat accounts #0 and #1)
PATIENT_WALLET = {
    "address": "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
    "private_key": "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80",
}
OTHER_WALLET = {
    "address": "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
    "private_key": "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d",
}


def sign(message, private_key):
    signed = Account.sign_message(encode_defunct(text=message), private_key=private_key)
    return signed.signature.hex()
