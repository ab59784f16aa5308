"""Start the server"""


def setup_parser(parser):
    """Setup argument parser for start command"""


def execute(args, orchestrator):
    """Execute start command"""
    return orchestrator.start()
