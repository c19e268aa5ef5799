"""CLI harness: init-db, history, generate, publish, unpublish."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.engine import make_url

from docengine.db.base import Base
from docengine.db.config import DBConfig
from docengine.db.session import get_engine, init_db
from docengine.documents import (
    DocumentError,
    GenerationPipeline,
    GenerationRequest,
    PublicationService,
    TokenChannel,
    VersionStore,
)
from docengine.llm import LLMService, LLMSettings
import docengine.db.models  # noqa: F401


def _ensure_sqlite_dir(cfg: DBConfig) -> None:
    url = make_url(cfg.db_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def _cmd_init_db(args: argparse.Namespace) -> int:
    cfg = DBConfig()
    _ensure_sqlite_dir(cfg)
    init_db(cfg)
    engine = get_engine()
    Base.metadata.create_all(engine)
    with engine.connect() as conn:
        for table in Base.metadata.sorted_tables:
            n = conn.execute(select(func.count()).select_from(table)).scalar_one()
            print(f"  {table.name}: {n}")
    return 0


def _cmd_history(args: argparse.Namespace) -> int:
    init_db()
    versions = VersionStore().list_versions(args.document_id)
    if not versions:
        print(f"Error: no versions for document {args.document_id}", file=sys.stderr)
        return 1
    for v in versions:
        meta = v.metadata or {}
        print(f"v{v.version_number}  {v.id}  {v.created_at:%Y-%m-%d %H:%M}  chars={len(v.content)}  by={v.created_by_user_id}")
        if meta.get("source_document_ids"):
            print(f"      sources={','.join(meta['source_document_ids'])}")
        if meta.get("partial"):
            print("      partial")
    return 0


def _cmd_generate(args: argparse.Namespace) -> int:
    init_db()
    pipeline = GenerationPipeline(LLMService(LLMSettings()))
    parameters: dict[str, object] = {}
    if args.date:
        parameters["meeting_date"] = args.date
    if args.participants:
        parameters["participants"] = args.participants
    req = GenerationRequest(
        title=args.title,
        owner_id=args.owner,
        workspace_id=args.workspace,
        author_id=args.author,
        source_document_ids=args.sources,
        parameters=parameters,
        system_instruction=args.system,
        max_output_tokens=args.max_tokens,
        document_type=args.document_type,
    )

    async def run():
        channel = TokenChannel()

        async def echo() -> None:
            async for piece in channel:
                sys.stdout.write(piece)
                sys.stdout.flush()

        printer = asyncio.create_task(echo())
        try:
            return await pipeline.generate(req, channel=channel)
        finally:
            # The printer re-raises the pipeline's failure; that error is reported below.
            await asyncio.gather(printer, return_exceptions=True)

    try:
        result = asyncio.run(run())
    except DocumentError as e:
        print(f"\nError [{e.code}]: {e}", file=sys.stderr)
        return 1
    print(f"\n\ndocument_id={result.document_id}")
    print(f"version_id={result.version_id}")
    print(f"first_version={result.is_first_version}")
    return 0


def _cmd_publish(args: argparse.Namespace) -> int:
    init_db()
    try:
        envelope = PublicationService().publish(args.envelope_id, args.version_id, args.searchable)
    except DocumentError as e:
        print(f"Error [{e.code}]: {e}", file=sys.stderr)
        return 1
    print(f"published={envelope.published_version_id} searchable={envelope.is_searchable}")
    return 0


def _cmd_unpublish(args: argparse.Namespace) -> int:
    init_db()
    try:
        envelope = PublicationService().unpublish(args.envelope_id)
    except DocumentError as e:
        print(f"Error [{e.code}]: {e}", file=sys.stderr)
        return 1
    print(f"unpublished draft={envelope.draft_version_id}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Versioned document engine CLI")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init-db", help="Create tables (DB_DB_URL) and print row counts")
    p_init.set_defaults(func=_cmd_init_db)

    p_hist = sub.add_parser("history", help="List a document's versions, newest first")
    p_hist.add_argument("document_id")
    p_hist.set_defaults(func=_cmd_history)

    p_gen = sub.add_parser("generate", help="Generate a new version from source documents")
    p_gen.add_argument("--owner", "-o", required=True, help="Objective id that owns the document")
    p_gen.add_argument("--workspace", "-w", required=True, help="Workspace id")
    p_gen.add_argument("--author", "-a", required=True, help="Author user id")
    p_gen.add_argument("--title", "-t", required=True)
    p_gen.add_argument("--date", default=None, help="Meeting date (default: today)")
    p_gen.add_argument("--participants", nargs="*", default=None)
    p_gen.add_argument("--system", default=None, help="System instruction (default: DOCS_DEFAULT_SYSTEM_INSTRUCTION)")
    p_gen.add_argument("--max-tokens", type=int, default=None)
    p_gen.add_argument("--document-type", default=None)
    p_gen.add_argument("sources", nargs="+", help="Knowledge document ids")
    p_gen.set_defaults(func=_cmd_generate)

    p_pub = sub.add_parser("publish", help="Publish an envelope's current draft")
    p_pub.add_argument("envelope_id")
    p_pub.add_argument("version_id")
    p_pub.add_argument("--searchable", "-s", action="store_true")
    p_pub.set_defaults(func=_cmd_publish)

    p_unpub = sub.add_parser("unpublish", help="Clear an envelope's published slot")
    p_unpub.add_argument("envelope_id")
    p_unpub.set_defaults(func=_cmd_unpublish)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
