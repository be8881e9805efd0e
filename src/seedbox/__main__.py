"""Entry point: python -m seedbox <command> [args]

Every command maps onto one store operation. Results go to stdout as JSON
(or a bare value for the settings getters); logs go to stderr.

Exit codes: 0 success, 1 failed operation or invalid argument,
2 ambiguous session prefix.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import frontmatter

from seedbox.config import load_config
from seedbox.identity import current_identity
from seedbox.store.ledger import ExpansionLedger
from seedbox.store.models import MENU_FILTERS, Anchor, is_valid_seed_id, parse_menu_filter, validate_title
from seedbox.store.namespace import AmbiguousNamespaceError
from seedbox.store.repository import SeedRepository
from seedbox.store.settings import CONTEXT_TURNS_MAX, EXPANSION_MODES, MODELS, SettingsStore


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _emit(value: Any) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False))


def _fail(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


class Context:
    """Lazily opened store handles for one invocation."""

    def __init__(self, base_dir: Path, session_override: str | None) -> None:
        self.base_dir = base_dir
        self.session_override = session_override
        self._repository: SeedRepository | None = None
        self._settings: SettingsStore | None = None

    @property
    def settings(self) -> SettingsStore:
        if self._settings is None:
            self._settings = SettingsStore(self.base_dir)
        return self._settings

    @property
    def repository(self) -> SeedRepository:
        if self._repository is None:
            identity = current_identity(self.base_dir, self.session_override)
            self._repository = SeedRepository(
                self.base_dir,
                identity.session_id,
                identity.project_hash,
                settings=self.settings,
            )
        return self._repository

    @property
    def ledger(self) -> ExpansionLedger:
        return ExpansionLedger(self.repository)


# ── Seed commands ────────────────────────────────────────────


def _cmd_write(args: argparse.Namespace, ctx: Context) -> int:
    anchors = []
    if args.path:
        anchors.append(
            Anchor(
                path=args.path,
                context_start_text=args.start or "",
                context_end_text=args.end or "",
                line_start=args.line_start,
                line_end=args.line_end,
            )
        )
    result = ctx.repository.write(
        args.title,
        args.rationale,
        anchors,
        options_hint=args.options_hint,
        ttl_hours=args.ttl_hours,
    )
    _emit(result.to_dict())
    return 0 if result.success else 1


def _cmd_get(args: argparse.Namespace, ctx: Context) -> int:
    seed = ctx.repository.get(args.seed_id)
    _emit(seed.to_dict() if seed else None)
    return 0


def _cmd_list(args: argparse.Namespace, ctx: Context) -> int:
    menu_filter = parse_menu_filter(args.filter, ctx.settings.settings.default_filter)
    _emit([s.to_dict() for s in ctx.repository.list_seeds(menu_filter)])
    return 0


def _cmd_list_all(args: argparse.Namespace, ctx: Context) -> int:
    menu_filter = parse_menu_filter(args.filter, "all")
    _emit([s.to_dict() for s in ctx.repository.list_all_seeds(menu_filter)])
    return 0


def _success(ok: bool) -> int:
    _emit({"success": ok})
    return 0 if ok else 1


def _cmd_delete(args: argparse.Namespace, ctx: Context) -> int:
    return _success(ctx.repository.delete(args.seed_id))


def _cmd_archive(args: argparse.Namespace, ctx: Context) -> int:
    return _success(ctx.repository.archive(args.seed_id))


def _cmd_unarchive(args: argparse.Namespace, ctx: Context) -> int:
    return _success(ctx.repository.unarchive(args.seed_id))


def _cmd_conclude(args: argparse.Namespace, ctx: Context) -> int:
    return _success(ctx.ledger.conclude(args.seed_id, args.conclusion, args.result_path))


def _cmd_archive_all(args: argparse.Namespace, ctx: Context) -> int:
    _emit({"archived": ctx.repository.archive_all()})
    return 0


def _cmd_archive_outdated(args: argparse.Namespace, ctx: Context) -> int:
    _emit({"archived": ctx.repository.archive_outdated()})
    return 0


def _cmd_delete_archived(args: argparse.Namespace, ctx: Context) -> int:
    _emit({"deleted": ctx.repository.delete_archived()})
    return 0


def _cmd_cleanup(args: argparse.Namespace, ctx: Context) -> int:
    _emit({"cleaned": ctx.repository.cleanup_expired()})
    return 0


def _cmd_write_result(args: argparse.Namespace, ctx: Context) -> int:
    if not is_valid_seed_id(args.seed_id):
        return _fail(f"Invalid seed ID format: {args.seed_id}")
    path = ctx.ledger.write_result(args.seed_id, " ".join(args.text))
    _emit({"path": str(path)})
    return 0


def _cmd_read_result(args: argparse.Namespace, ctx: Context) -> int:
    if not is_valid_seed_id(args.seed_id):
        return _fail(f"Invalid seed ID format: {args.seed_id}")
    post = ctx.ledger.read_result(args.seed_id)
    if post is None:
        _emit(None)
    else:
        print(frontmatter.dumps(post))
    return 0


# ── Settings commands ────────────────────────────────────────


def _cmd_get_filter(args: argparse.Namespace, ctx: Context) -> int:
    print(ctx.settings.settings.default_filter)
    return 0


def _cmd_set_filter(args: argparse.Namespace, ctx: Context) -> int:
    if args.value not in MENU_FILTERS:
        return _fail(f"Invalid filter: {args.value} (must be one of: {', '.join(MENU_FILTERS)})")
    ctx.settings.update(default_filter=args.value)
    print(args.value)
    return 0


def _cmd_cycle_filter(args: argparse.Namespace, ctx: Context) -> int:
    print(ctx.settings.cycle_filter())
    return 0


def _cmd_get_context_turns(args: argparse.Namespace, ctx: Context) -> int:
    print(ctx.settings.settings.context_turns)
    return 0


def _cmd_set_context_turns(args: argparse.Namespace, ctx: Context) -> int:
    try:
        turns = int(args.value)
    except ValueError:
        turns = -1
    if not 0 <= turns <= CONTEXT_TURNS_MAX:
        return _fail(f"Invalid context turns: {args.value} (must be 0-{CONTEXT_TURNS_MAX})")
    ctx.settings.update(context_turns=turns)
    print(turns)
    return 0


def _cmd_cycle_context_turns(args: argparse.Namespace, ctx: Context) -> int:
    print(ctx.settings.cycle_context_turns())
    return 0


def _cmd_get_mode(args: argparse.Namespace, ctx: Context) -> int:
    print(ctx.settings.settings.expansion_mode)
    return 0


def _cmd_set_mode(args: argparse.Namespace, ctx: Context) -> int:
    if args.value not in EXPANSION_MODES:
        return _fail(f'Invalid mode: {args.value} (must be "interactive" or "auto")')
    ctx.settings.update(expansion_mode=args.value)
    print(args.value)
    return 0


def _cmd_get_permissions(args: argparse.Namespace, ctx: Context) -> int:
    print("enabled" if ctx.settings.settings.skip_permissions else "disabled")
    return 0


def _cmd_set_permissions(args: argparse.Namespace, ctx: Context) -> int:
    if args.value not in ("enabled", "disabled"):
        return _fail(f'Invalid permissions mode: {args.value} (must be "enabled" or "disabled")')
    ctx.settings.update(skip_permissions=args.value == "enabled")
    print(args.value)
    return 0


def _cmd_get_model(args: argparse.Namespace, ctx: Context) -> int:
    print(ctx.settings.settings.model)
    return 0


def _cmd_set_model(args: argparse.Namespace, ctx: Context) -> int:
    if args.value not in MODELS:
        return _fail(f"Invalid model: {args.value} (must be one of: {', '.join(MODELS)})")
    ctx.settings.update(model=args.value)
    print(args.value)
    return 0


# ── Diagnostics ──────────────────────────────────────────────


def _cmd_session_id(args: argparse.Namespace, ctx: Context) -> int:
    identity = current_identity(ctx.base_dir, ctx.session_override)
    print(identity.session_id)
    if args.verbose:
        print(f"source: {identity.source}", file=sys.stderr)
        print(f"project hash: {identity.project_hash or '<none>'}", file=sys.stderr)
    return 0


def _cmd_validate_title(args: argparse.Namespace, ctx: Context) -> int:
    reason = validate_title(args.title)
    if reason:
        _emit({"valid": False, "reason": reason})
        return 1
    _emit({"valid": True})
    return 0


def _cmd_validate_id(args: argparse.Namespace, ctx: Context) -> int:
    valid = is_valid_seed_id(args.seed_id)
    _emit({"valid": valid})
    return 0 if valid else 1


Handler = Callable[[argparse.Namespace, Context], int]


def _build_parser() -> tuple[argparse.ArgumentParser, dict[str, Handler]]:
    parser = argparse.ArgumentParser(prog="seedbox", description="Manage session insight seeds.")
    parser.add_argument("--base-dir", type=Path, help="Store root (default: $SEEDBOX_HOME or ~/.seedbox)")
    parser.add_argument("--session-id", help="Explicit session identity override")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    sub = parser.add_subparsers(dest="command", metavar="command")
    handlers: dict[str, Handler] = {}

    def add(name: str, handler: Handler, help: str) -> argparse.ArgumentParser:
        handlers[name] = handler
        return sub.add_parser(name, help=help)

    p = add("write", _cmd_write, "Write a new seed")
    p.add_argument("title")
    p.add_argument("rationale")
    p.add_argument("path", nargs="?")
    p.add_argument("start", nargs="?")
    p.add_argument("end", nargs="?")
    p.add_argument("--options-hint")
    p.add_argument("--ttl-hours", type=int)
    p.add_argument("--line-start", type=int)
    p.add_argument("--line-end", type=int)

    for name, handler, help in [
        ("get", _cmd_get, "Show one seed (null if unknown)"),
        ("delete", _cmd_delete, "Permanently delete a seed"),
        ("archive", _cmd_archive, "Archive a seed"),
        ("unarchive", _cmd_unarchive, "Restore an archived seed"),
        ("read-result", _cmd_read_result, "Show a seed's expansion result"),
        ("validate-id", _cmd_validate_id, "Check seed id format"),
    ]:
        add(name, handler, help).add_argument("seed_id")

    for name, handler, help in [
        ("list", _cmd_list, "List seeds for the current project"),
        ("list-all", _cmd_list_all, "List seeds across all projects"),
    ]:
        add(name, handler, help).add_argument("filter", nargs="?")

    p = add("conclude", _cmd_conclude, "Record an expansion conclusion")
    p.add_argument("seed_id")
    p.add_argument("conclusion")
    p.add_argument("result_path", nargs="?")

    p = add("write-result", _cmd_write_result, "Write a seed's expansion result")
    p.add_argument("seed_id")
    p.add_argument("text", nargs="+")

    p = add("validate-title", _cmd_validate_title, "Check a seed title")
    p.add_argument("title")

    add("session-id", _cmd_session_id, "Print the resolved session identity (source with -v)")

    for name, handler, help in [
        ("archive-all", _cmd_archive_all, "Archive all active seeds"),
        ("archive-outdated", _cmd_archive_outdated, "Archive outdated seeds"),
        ("delete-archived", _cmd_delete_archived, "Delete all archived seeds"),
        ("cleanup", _cmd_cleanup, "Delete seeds past their ttl"),
        ("get-filter", _cmd_get_filter, "Show the default list filter"),
        ("cycle-filter", _cmd_cycle_filter, "Advance the default list filter"),
        ("get-context-turns", _cmd_get_context_turns, "Show context turns"),
        ("cycle-context-turns", _cmd_cycle_context_turns, "Advance context turns"),
        ("get-mode", _cmd_get_mode, "Show expansion mode"),
        ("get-permissions", _cmd_get_permissions, "Show permission skipping"),
        ("get-model", _cmd_get_model, "Show expansion model"),
    ]:
        add(name, handler, help)

    for name, handler, help in [
        ("set-filter", _cmd_set_filter, "Set the default list filter"),
        ("set-context-turns", _cmd_set_context_turns, "Set context turns (0-20)"),
        ("set-mode", _cmd_set_mode, "Set expansion mode (interactive|auto)"),
        ("set-permissions", _cmd_set_permissions, "Set permission skipping (enabled|disabled)"),
        ("set-model", _cmd_set_model, "Set expansion model (opus|sonnet|haiku)"),
    ]:
        add(name, handler, help).add_argument("value")

    return parser, handlers


def main(argv: list[str] | None = None) -> int:
    parser, handlers = _build_parser()
    args = parser.parse_args(argv)

    config = load_config()
    _setup_logging("DEBUG" if args.verbose else config.log_level)

    if args.command is None:
        parser.print_help(sys.stderr)
        return 1

    ctx = Context(
        base_dir=args.base_dir or config.base_dir,
        session_override=args.session_id or config.session_override,
    )
    try:
        return handlers[args.command](args, ctx)
    except AmbiguousNamespaceError as e:
        print(str(e), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
