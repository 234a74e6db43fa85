#!/usr/bin/env python3
"""
filmrecipe Command Line Interface

Main CLI entry point for exporting adjustment recipes to presets, styles
and LUTs, and importing presets back into recipes.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from filmrecipe.cli import main


if __name__ == '__main__':
    main()
