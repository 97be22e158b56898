"""Allow ``python -m kitchen_stock``."""

from kitchen_stock.cli import main

main()
