"""Stop the server"""


def setup_parser(parser):
    """Setup argument parser for stop command"""


def execute(args, orchestrator):
    """Execute stop command"""
    return orchestrator.stop()
