"""Clean build output and remove the project's deployment"""


def setup_parser(parser):
    """Setup argument parser for clean command"""


def execute(args, orchestrator):
    """Execute clean command"""
    return orchestrator.clean()
