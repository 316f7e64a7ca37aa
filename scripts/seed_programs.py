"""
Seed the exercise catalog and program templates from a JSON file.

Usage:
    python -m scripts.seed_programs --file data/sample_programs.json
    python -m scripts.seed_programs --file data/sample_programs.json --database-url sqlite+aiosqlite:///./dev.db

File format:
    {"exercises": [ExerciseSeed, ...], "programs": [ProgramDefinition, ...]}
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

from pydantic import TypeAdapter

from program_tracker.core.exceptions import DomainError
from program_tracker.core.logging import configure_logging, get_logger
from program_tracker.db.database import create_primary_engine, create_session_maker, init_db
from program_tracker.schemas.program import ExerciseSeed, ProgramDefinition
from program_tracker.services.program_catalog import ProgramCatalogService

logger = get_logger(__name__)

_exercises = TypeAdapter(list[ExerciseSeed])
_programs = TypeAdapter(list[ProgramDefinition])


async def seed(path: Path, database_url: str | None = None) -> int:
    """Import every exercise and program in the file; returns the number of programs created."""
    payload = json.loads(path.read_text(encoding="utf-8"))
    exercises = _exercises.validate_python(payload.get("exercises", []))
    programs = _programs.validate_python(payload.get("programs", []))

    engine = create_primary_engine(database_url)
    try:
        await init_db(engine)
        async with create_session_maker(engine)() as session:
            catalog = ProgramCatalogService(session)
            await catalog.import_exercises(exercises)
            for definition in programs:
                program = await catalog.import_program(definition)
                print(f"Imported program {program.id}: {program.name} ({len(definition.days)} days)")
    finally:
        await engine.dispose()
    return len(programs)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed exercises and program templates")
    parser.add_argument("--file", required=True, type=Path, help="JSON file to import")
    parser.add_argument("--database-url", default=None, help="Override PROGRAM_TRACKER_DATABASE_URL")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = create_parser().parse_args(argv)
    configure_logging()
    try:
        count = asyncio.run(seed(args.file, args.database_url))
    except DomainError as exc:
        logger.error("seed_failed", code=exc.code, message=exc.message, details=exc.details)
        return 1
    print(f"Seeded {count} program(s) from {args.file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
