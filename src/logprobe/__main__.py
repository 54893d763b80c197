"""Allow ``python -m logprobe``."""

from .cli import main

main()
