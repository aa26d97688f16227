#!/usr/bin/env python3

import argparse
import logging
from pathlib import Path

import colorama
import peimage
from peimage.formats import PEFormatError, PEImage
from peimage.logging import argparse_add_logging_args, argparse_parse_logging
from peimage.report import ImageReport

logger = logging.getLogger(__name__)
colorama.just_fix_windows_console()


def print_heading(text: str, plain: bool):
    if plain:
        print(text)
    else:
        print(colorama.Style.BRIGHT + text + colorama.Style.RESET_ALL)


def print_summary(image: PEImage, plain: bool):
    print_heading("Headers", plain)
    machine = getattr(image.machine, "name", f"0x{image.machine:x}")
    print(f"  machine:      {machine}")
    print(f"  format:       {'PE32+' if image.is_64bit else 'PE32'}")
    print(f"  timestamp:    {image.header.timestamp.isoformat()}")
    print(f"  image base:   0x{image.imagebase:x}")
    print(f"  entry point:  0x{image.entry:x}")
    print(f"  sections:     {len(image.sections)}")
    print(f"  directories:  {len(image.directories)}")


def print_directories(image: PEImage, plain: bool):
    print_heading("Data directories", plain)
    for d in image.directories:
        if d.is_empty:
            continue
        name = d.name.name if d.name is not None else f"#{d.index}"
        print(f"  {name:<24} 0x{d.virtual_address:08x}  0x{d.size:x}")


def print_sections(image: PEImage, plain: bool):
    print_heading("Sections", plain)
    print("      name │    v.addr │   v.size │ raw ptr  │ raw size")
    for s in image.sections:
        print(
            f"  {s.name:>8} │ {s.virtual_address:9x} │ {s.virtual_size:8x} │ "
            f"{s.header.pointer_to_raw_data:8x} │ {s.size_of_raw_data:8x}"
        )


def main():
    parser = argparse.ArgumentParser(
        allow_abbrev=False,
        description="Decode the headers and section table of a PE (EXE or DLL) file.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {peimage.VERSION}"
    )
    parser.add_argument("file", metavar="<file>", type=Path, help="PE file to decode")
    parser.add_argument(
        "--sections", action="store_true", help="Print the section table"
    )
    parser.add_argument(
        "--directories",
        action="store_true",
        help="Print the non-empty data directories",
    )
    parser.add_argument(
        "--json", metavar="<file>", type=Path, help="Write a JSON report"
    )
    parser.add_argument(
        "--yaml", metavar="<file>", type=Path, help="Write a YAML report"
    )
    parser.add_argument(
        "--no-color", "-n", action="store_true", help="Do not color the output"
    )
    argparse_add_logging_args(parser)

    args = parser.parse_args()

    argparse_parse_logging(args)

    try:
        image = PEImage.from_file(args.file)
    except OSError as e:
        logger.error("%s: %s", args.file, e.strerror or e)
        return 2
    except PEFormatError as e:
        if args.no_color:
            logger.error("%s is not a valid PE image: %s", args.file, e)
        else:
            logger.error(
                "%s is not a valid PE image: %s%s%s",
                args.file,
                colorama.Fore.RED,
                e,
                colorama.Style.RESET_ALL,
            )
        return 1

    logger.info("Decoded %s", args.file)
    print_summary(image, args.no_color)

    if args.directories:
        print_directories(image, args.no_color)

    if args.sections:
        print_sections(image, args.no_color)

    if args.json is not None or args.yaml is not None:
        report = ImageReport.from_image(image)
        if args.json is not None:
            report.write_json(args.json)
            logger.info("Wrote JSON report to %s", args.json)
        if args.yaml is not None:
            report.write_yaml(args.yaml)
            logger.info("Wrote YAML report to %s", args.yaml)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
