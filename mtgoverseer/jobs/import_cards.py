"""
Import catalog cards into the local collection.

Searches Scryfall and upserts every result into the local store:

    python -m mtgoverseer.jobs.import_cards "set:dmu r:mythic" --pages 2
"""

import argparse
import asyncio
import logging

from mtgoverseer.db.database import create_client, init_db
from mtgoverseer.services.catalog import ScryfallClient
from mtgoverseer.services.collection import save_card

logger = logging.getLogger(__name__)


async def run_import(
    query: str,
    max_pages: int | None = None,
    catalog: ScryfallClient | None = None,
    database_name: str | None = None,
) -> int:
    """
    Search the catalog and store every matching card.

    Returns:
        Number of cards stored.
    """
    client = create_client(database_name)
    repository = await init_db(client)
    scryfall = catalog or ScryfallClient()
    imported = 0

    logger.info("Importing cards matching %r", query)
    try:
        async for card in scryfall.iter_search(query, max_pages=max_pages):
            await save_card(repository, card)
            imported += 1
    except Exception as e:
        logger.error("Import stopped after %d cards: %s", imported, e)
        raise
    finally:
        if catalog is None:
            await scryfall.aclose()
        await client.disconnect()

    logger.info("Imported %d cards", imported)
    return imported


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Import Scryfall cards into the local store")
    parser.add_argument("query", help="Scryfall search query")
    parser.add_argument("--pages", type=int, default=None, help="Maximum result pages to fetch")
    parser.add_argument("--database", default=None, help="Database file name")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_import(args.query, max_pages=args.pages, database_name=args.database))


if __name__ == "__main__":
    main()
