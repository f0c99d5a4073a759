"""Entry point for python -m legal_contract_ai"""

from legal_contract_ai.cli.main import app

if __name__ == "__main__":
    app()
