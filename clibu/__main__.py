"""
clibu process entrypoint (`python -m clibu` / `clibu`).

Loads the configuration from the working directory, prints the sample hint
to stderr and exits with 1 when none is found, otherwise runs the CLI with
sys.argv[1:] and exits with its status.
"""
import sys

from .faults import console
from .loader import load_config, sample_config_hint
from .runtime import create_cli


def main(argv=None, directory=None):
    config = load_config(directory)
    if config is None:
        console.print(sample_config_hint(), markup=False, highlight=False)
        return 1
    return create_cli(config).run(sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":
    sys.exit(main())
