# Top-level interface to run the SISA tests.

import os
import sys
import unittest


if __name__ == "__main__":
    suite = unittest.TestSuite()
    # Test directories are not packages, so each one is discovered on its own.
    for directory, _, _ in sorted(os.walk(os.path.join(os.path.dirname(__file__), "tests"))):
        if directory.endswith("__pycache__"):
            continue
        suite.addTests(unittest.TestLoader().discover(directory, top_level_dir=directory))
    result = unittest.TextTestRunner(verbosity=int("-v" in sys.argv) + 1).run(suite)
    sys.exit(not result.wasSuccessful())
