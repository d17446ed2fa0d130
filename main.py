"""Localizer — multi-language JSON translation workbench.

Launch with: python main.py --help
"""

from localizer.cli import app


def main():
    app()


if __name__ == "__main__":
    main()
