# sentinel/cli.py
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console

from . import __version__
from .core.gate import GuardOptions, guard
from .utils.env import load_env, sentinel_home
from .utils.logger import setup_logging

err = Console(stderr=True)


def _command_words(words: List[str]) -> List[str]:
    # `sentinel exec -- git push` : argparse keeps the separator in REMAINDER
    if words and words[0] == "--":
        words = words[1:]
    return words


def _guard(args: argparse.Namespace, analyze_only: bool) -> int:
    words = _command_words(args.command)
    if not words:
        err.print(f"[red][!] usage: sentinel {args.cmd} [-c CONFIG] [-y] <command...>[/red]")
        return 1
    if not analyze_only:
        err.print("\n[bold cyan]🛡️  SENTINEL[/bold cyan]")
        err.print("[dim]the guardian between you and chaos[/dim]\n")
    options = GuardOptions(
        config_path=args.config,
        auto_approve=args.yes,
        analyze_only=analyze_only,
        emit_json=getattr(args, "json", False),
    )
    return guard(words, options, console=err)


def _stats(recent: int) -> int:
    from .ui.stats import run_stats
    run_stats(recent=recent)
    return 0


def _watch() -> int:
    try:
        from .ui.watch import run_watch
    except ImportError as e:
        err.print(f"[red][!] watch view not available: {e}[/red]")
        return 1
    run_watch(str(sentinel_home() / "events.jsonl"))
    return 0


def _init(shell: Optional[str], commands: Optional[str], write_config: bool) -> int:
    from .shell import GUARDED_COMMANDS, detect_shell, integration_script
    from .utils.config import write_default_config

    if write_config:
        p = write_default_config()
        err.print(f"[green][+] wrote default config to {p}[/green]")

    shell = shell or detect_shell()
    if not shell:
        err.print("[red][!] could not detect your shell; pass one of bash, zsh, fish[/red]")
        return 1
    guarded = [c.strip() for c in commands.split(",")] if commands else list(GUARDED_COMMANDS)
    sys.stdout.write(integration_script(shell, guarded))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sentinel", description="command-risk gate for your shell")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="cmd", required=True)

    for name, help_text in (
        ("exec", "evaluate a command and run it if allowed"),
        ("analyze", "evaluate a command without running it (exit 0 = would run, 1 = blocked)"),
    ):
        s = sub.add_parser(name, help=help_text)
        s.add_argument("-c", "--config", help="path to a sentinel.yml")
        s.add_argument("-y", "--yes", action="store_true",
                       help="auto-approve warning AND critical commands without prompting")
        if name == "analyze":
            s.add_argument("--json", action="store_true", help="print the assessment as JSON on stdout")
        s.add_argument("command", nargs=argparse.REMAINDER)

    st = sub.add_parser("stats", help="show statistics and recent commands")
    st.add_argument("--recent", type=int, default=5, help="number of recent events to show")

    sub.add_parser("watch", help="live view of evaluated commands")

    i = sub.add_parser("init", help="print shell integration for bash, zsh or fish")
    i.add_argument("shell", nargs="?", choices=["bash", "zsh", "fish"])
    i.add_argument("--commands", help="comma separated commands to guard")
    i.add_argument("--write-config", action="store_true", help="write a default sentinel.yml in the current directory")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Hydrate env from $SENTINEL_HOME/.env (does not overwrite existing real env)
    load_env()
    try:
        setup_logging()
    except OSError as e:
        err.print(f"[yellow][!] logging disabled: {e}[/yellow]")

    try:
        if args.cmd == "exec":
            return _guard(args, analyze_only=False)
        if args.cmd == "analyze":
            return _guard(args, analyze_only=True)
        if args.cmd == "stats":
            return _stats(args.recent)
        if args.cmd == "watch":
            return _watch()
        if args.cmd == "init":
            return _init(args.shell, args.commands, args.write_config)
    except KeyboardInterrupt:
        err.print("\nbye")
        return 1
    except Exception as e:
        logging.getLogger("sentinel").exception("unexpected error in %s", args.cmd)
        err.print(f"[red][!] {args.cmd} failed: {e}[/red]")
        return 1
    return 1
