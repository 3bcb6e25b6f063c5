import argparse
import asyncio
import sys

from src.core.neo4j import Neo4jConnection, Neo4jNotReadyError, ensure_neo4j_ready
from src.services.indexing.analyzer_service import Analyzer, AnalyzerConfig, Tier
from src.services.indexing.exceptions import InvalidAnalyzerConfigError
from src.services.kg.kg_service import KnowledgeGraphService
from src.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="code-kg",
        description="Build a Code Knowledge Graph of a C# codebase in Neo4j",
    )
    parser.add_argument(
        "-c", "--credentials",
        required=True,
        help="required information in format `dbname:user:password` to connect to Neo4j Database",
    )
    parser.add_argument(
        "-t", "--tier",
        type=str.lower,
        choices=[str(tier) for tier in Tier],
        default=str(Tier.all),
        help="optional flag as `project` or `code` or `all` (default `all`) selected tier to scan in a codebase",
    )
    parser.add_argument(
        "-d", "--delete",
        default=None,
        help="optional flag as `true` or `false` (default `true`) to delete data in graph before execution",
    )
    parser.add_argument(
        "-s", "--solution",
        help="optional absolute path to only one `.sln` file (can't be used together with -p / --projects)",
    )
    parser.add_argument(
        "-p", "--projects",
        nargs="+",
        help="optional list of absolute paths to one or many `.csproj` files (can't be used together with -s / --solution)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="log level name (default: LOG_LEVEL setting)",
    )
    return parser


async def run(config: AnalyzerConfig) -> int:
    """Health-check the database, then analyze and persist. Returns the exit code."""
    driver = Neo4jConnection.get_driver(config.username, config.password)
    try:
        try:
            await ensure_neo4j_ready(driver)
        except Neo4jNotReadyError as e:
            logger.error(str(e))
            print("Failed to start. There is no Neo4j instance ready to use.")
            return 1

        print(f'Brewing a Code Knowledge Graph of tier "{config.tier}".')
        kg_service = KnowledgeGraphService(driver, database=config.database)
        stats = await Analyzer(config, kg_service).analyze()

        if stats.failed_files:
            print(f"{stats.failed_files} files could not be analyzed; see the log for details.")
        print("Code Knowledge Graph created.")
        return 0
    finally:
        await Neo4jConnection.close_driver()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = AnalyzerConfig.from_options(
            credentials=args.credentials,
            tier=args.tier,
            delete=args.delete,
            solution=args.solution,
            projects=args.projects,
        )
    except InvalidAnalyzerConfigError as e:
        print(str(e))
        return 2

    try:
        return asyncio.run(run(config))
    except Exception as e:
        logger.error(f"Analysis failed: {e}", exc_info=True)
        print(f"Analysis failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
