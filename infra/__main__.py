"""Command-line entry point for hive-infra provisioning."""
from hive_infra.__main__ import main

main()
