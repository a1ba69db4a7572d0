"""
Entry point for running lokma-i18n as a module.

Usage:
    python -m lokma_i18n --help
    python -m lokma_i18n extract
    python -m lokma_i18n translate --backend google-free
    python -m lokma_i18n doctor
"""
from .cli import app


if __name__ == "__main__":
    app()
