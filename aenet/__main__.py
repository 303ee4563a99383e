import sys

from aenet.autoenc_train import main

sys.exit(main(sys.argv[1:]))
