import argparse
import logging


def argparse_add_logging_args(parser: argparse.ArgumentParser):
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const=logging.INFO,
        dest="loglevel",
        help="Print progress messages",
    )
    group.add_argument(
        "--debug",
        action="store_const",
        const=logging.DEBUG,
        dest="loglevel",
        help="Print details of every decoding stage",
    )
    parser.set_defaults(loglevel=logging.WARNING)


def argparse_parse_logging(args: argparse.Namespace):
    logging.basicConfig(level=args.loglevel, format="[%(levelname)s] %(message)s")
