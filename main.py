#!/usr/bin/env python3
"""Entry point for Portfolio Risk."""

from portfolio_risk.cli import main

if __name__ == "__main__":
    main()
