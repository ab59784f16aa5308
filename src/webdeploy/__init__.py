"""
webdeploy - build, deploy, reload and refresh a locally developed web application

A command-line interface that takes a web project from "saved code" to
"fresh page in the browser": build, install into the server's webapps
directory, reload in place (or start the server), and reload the browser tab.
"""
import argparse
import sys

__version__ = "1.0.0"

USAGE_EPILOG = '''
Examples:
  webdeploy start                   # Start the server (no-op if running)
  webdeploy stop                    # Stop the server (no-op if stopped)
  webdeploy deploy                  # Build, deploy, reload, refresh browser
  webdeploy deploy source           # Deploy src/main/webapp as-is
  webdeploy clean                   # Clean build output and undeploy
  webdeploy help                    # Show this help

Environment:
  CATALINA_HOME, JAVA_HOME          # Required: server and Java runtime homes
  CATALINA_BASE                     # Optional: server instance directory
  TOMCAT_MANAGER_USER/PASSWORD      # Credentials for in-place reload

Exit status: 0 success, 1 failure, 2 usage error, 3 deployed but reload failed
'''


def build_parser():
    """Argument parser with one sub-command per action."""
    from webdeploy.commands import start, stop, deploy, clean

    parser = argparse.ArgumentParser(
        prog='webdeploy',
        description='webdeploy: build, deploy and reload a local web application',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=USAGE_EPILOG
    )
    parser.add_argument('--project-dir', help='Project directory (default: current directory)')
    parser.add_argument('--config', help='Config file (default: <project>/webdeploy.yaml if present)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Show build output and debug detail')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Action to perform')

    # Start command
    start_parser = subparsers.add_parser('start', help='Start the server')
    start.setup_parser(start_parser)

    # Stop command
    stop_parser = subparsers.add_parser('stop', help='Stop the server')
    stop.setup_parser(stop_parser)

    # Deploy command
    deploy_parser = subparsers.add_parser('deploy', help='Deploy the application')
    deploy.setup_parser(deploy_parser)

    # Clean command
    clean_parser = subparsers.add_parser('clean', help='Clean build output and undeploy')
    clean.setup_parser(clean_parser)

    # Help command
    subparsers.add_parser('help', help='Show usage')

    return parser


def main(argv=None):
    """Main CLI entry point"""
    from webdeploy.commands import start, stop, deploy, clean
    from webdeploy.commands.context import create_orchestrator, report
    from webdeploy.core import ConsoleLogger
    from webdeploy.exceptions import WebDeployError

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == 'help':
        parser.print_help()
        sys.exit(0)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    handlers = {
        'start': start,
        'stop': stop,
        'deploy': deploy,
        'clean': clean,
    }

    logger = ConsoleLogger(verbose=args.verbose)

    # Dispatch to command handler
    try:
        orchestrator = create_orchestrator(args, logger=logger)
        result = handlers[args.command].execute(args, orchestrator)
        sys.exit(report(result, logger))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except WebDeployError as e:
        logger.error(f"[{e.stage}] {e}")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)
