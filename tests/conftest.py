import sys
import os

_tests_dir = os.path.dirname(os.path.abspath(__file__))
_src_dir   = os.path.abspath(os.path.join(_tests_dir, '..'))

# Import the package from the source tree when it is not installed
# (e.g. running pytest straight from a checkout).
sys.path.insert(0, _src_dir)

DATA_DIR = os.path.join(_tests_dir, 'data')
