"""
globlist-packer command line interface

Packs a directory into a .tgz/.zip archive, or copies it into another
directory, keeping only files that survive the ignore-list cascade.
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from . import __version__
from .config import config_from_mapping, load_config_file
from .errors import PackerError
from .models import ArchiveType, PackMode
from .packer import pack
from .progress import ProgressStep, steps_for_mode
from .utils import configure_logging, get_logger

logger = get_logger(__name__)

USAGE_EXAMPLES = """
Examples:
  globlist-packer                                  # packed.tgz from .gitignore rules in cwd
  globlist-packer -i .npmignore                    # .npmignore.tgz, named after the first list
  globlist-packer -i rules/deploy.ignore -t zip    # deploy.zip
  globlist-packer --copy-files-to ../dist          # copy instead of archiving
  globlist-packer --config packer.json --verbose
"""

# argparse dest -> PackerConfig field; only flags actually given are forwarded
ARG_TO_FIELD = {
    'root_dir': 'root_dir',
    'ignorelist_files': 'ignore_list_file_names',
    'use_gitignore_files': 'use_gitignore_files',
    'include_default_ignores': 'include_default_ignores',
    'include_empty': 'include_empty',
    'follow_symlink': 'follow_symlink',
    'out_dir': 'out_dir',
    'copy_files_to': 'copy_files_to',
    'archive_name': 'archive_name',
    'archive_type': 'archive_type',
    'archive_root_dir_name': 'archive_root_dir_name',
    'max_files': 'max_file_count',
    'verbose': 'verbose',
}


class StepProgressBar:
    """tqdm bar advanced once per pack step"""

    def __init__(self, mode: PackMode, disable: Optional[bool] = None):
        self.plan = steps_for_mode(mode)
        self.bar = tqdm(
            total=len(self.plan),
            desc="Starting",
            unit="step",
            file=sys.stderr,
            disable=disable,
            bar_format="{desc:<32} {n_fmt}/{total_fmt} |{bar}|",
        )

    def __call__(self, step: ProgressStep) -> None:
        self.bar.set_description_str(step.label)
        self.bar.update(1)
        if step is ProgressStep.DONE:
            self.close()

    def close(self) -> None:
        self.bar.close()


def build_parser() -> argparse.ArgumentParser:
    """Argument parser; every option defaults to None so config files can fill it"""
    parser = argparse.ArgumentParser(
        prog='globlist-packer',
        description='Pack a directory into an archive using ignore-list files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=USAGE_EXAMPLES,
    )
    parser.add_argument('--root-dir', metavar='DIR',
                        help='Directory to pack (default: current directory)')
    parser.add_argument('-i', '--ignorelist-files', nargs='+', action='extend', metavar='FILE',
                        help='Ignore-list files, applied after defaults and .gitignore')
    parser.add_argument('--use-gitignore-files', action=argparse.BooleanOptionalAction,
                        default=None, help='Honour .gitignore files (default: on)')
    parser.add_argument('--include-default-ignores', action=argparse.BooleanOptionalAction,
                        default=None, help='Exclude node_modules and .git (default: on)')
    parser.add_argument('--include-empty', action='store_true', default=None,
                        help='Keep empty directories')
    parser.add_argument('--follow-symlink', action='store_true', default=None,
                        help='Descend into symlinked directories')
    parser.add_argument('-d', '--out-dir', metavar='DIR',
                        help='Where the archive is written (default: root dir)')
    parser.add_argument('--copy-files-to', metavar='DIR',
                        help='Copy matched files into DIR instead of archiving')
    parser.add_argument('-n', '--archive-name',
                        help='Archive base name; the extension follows --archive-type')
    parser.add_argument('-t', '--archive-type', choices=[t.value for t in ArchiveType],
                        help='Archive format (default: tar)')
    parser.add_argument('--archive-root-dir-name', metavar='NAME',
                        help='Nest every file under this folder inside the output')
    parser.add_argument('-m', '--max-files', type=int, metavar='N',
                        help='Abort if more than N files match')
    parser.add_argument('--config', metavar='FILE',
                        help='JSON file with options; command line flags win')
    parser.add_argument('--verbose', action='store_true', default=None,
                        help='Log options, copied files and blocked files')
    parser.add_argument('--log-level', choices=['TRACE', 'DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: WARNING, INFO with --verbose)')
    parser.add_argument('-V', '--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """PackerConfig fields for every flag given on the command line"""
    overrides = {}
    for dest, field_name in ARG_TO_FIELD.items():
        value = getattr(args, dest, None)
        if value is not None:
            overrides[field_name] = value
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI

    Returns:
        0 on success, 1 when the pack fails; argparse exits with 2 on bad flags
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(log_level=args.log_level or ('INFO' if args.verbose else None))

    try:
        file_options = load_config_file(args.config) if args.config else {}
        config = config_from_mapping(file_options, **overrides_from_args(args))
    except PackerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    progress_bar = StepProgressBar(config.mode)
    config.on_step_change = progress_bar
    try:
        result = pack(config)
    except PackerError as e:
        progress_bar.close()
        print(f"Error: {e}", file=sys.stderr)
        return 1
    progress_bar.close()

    if result.mode is PackMode.COPY:
        print(f"Copied {len(result.copied)} file(s) to {result.destination}")
    else:
        print(f"Archive written to {result.destination}")
    if result.blocked:
        print(f"{len(result.blocked)} file(s) were blocked from being copied")
    return 0
