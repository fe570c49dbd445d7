"""Application ports towards the authentication provider, ledger and UI"""
