"""Deploy command - build-based (full cycle) or source-direct"""

SUB_ACTIONS = ('build', 'source')


def setup_parser(parser):
    """Setup argument parser for deploy command"""
    parser.add_argument(
        'mode',
        nargs='?',
        default='build',
        choices=SUB_ACTIONS,
        help="'build': build, then deploy the packaged artifact (default); "
             "'source': deploy the web source tree as-is"
    )


def execute(args, orchestrator):
    """Execute deploy command"""
    if args.mode == 'source':
        return orchestrator.deploy()
    return orchestrator.full_cycle()
