import sys

from qpcr_quant.pipeline import main

sys.exit(main())
