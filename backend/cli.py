"""Operator commands: seed the superadmin and inspect the database."""
import asyncio
import logging

import typer
from motor.motor_asyncio import AsyncIOMotorClient

from backend.admin import AdminService
from backend.config import LOG_FORMAT, Settings
from backend.store import ResourceStore

cli = typer.Typer(help="EcoWarrior maintenance commands")


def _connect(settings: Settings):
    client = AsyncIOMotorClient(settings.mongo_url)
    return client, ResourceStore(client[settings.db_name])


async def find_orphaned_posts(store: ResourceStore):
    """Posts whose author no longer has a profile."""
    docs = await store.posts.find({}, {"_id": 0, "id": 1, "title": 1, "author_id": 1}).to_list(length=None)
    known = await store.usernames_for(d["author_id"] for d in docs)
    return [d for d in docs if d["author_id"] not in known]


@cli.command("seed-superadmin")
def seed_superadmin():
    """Create or refresh the superadmin from SUPERADMIN_EMAIL / SUPERADMIN_PASSWORD."""
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    if not settings.superadmin_email or not settings.superadmin_password:
        typer.echo("SUPERADMIN_EMAIL and SUPERADMIN_PASSWORD must be set", err=True)
        raise typer.Exit(code=1)

    async def run():
        client, store = _connect(settings)
        try:
            await store.ensure_indexes()
            user = await AdminService(store).seed_superadmin(
                settings.superadmin_email, settings.superadmin_password, settings.superadmin_username
            )
            typer.echo(f"Superadmin ready: {user.email} ({user.id})")
        finally:
            client.close()

    asyncio.run(run())


@cli.command("check-database")
def check_database(limit: int = typer.Option(5, help="How many posts and comments to show")):
    """Print users, recent posts and comments, and orphaned posts."""
    settings = Settings.from_env()

    async def run():
        client, store = _connect(settings)
        try:
            typer.echo("USERS:")
            for user in await store.list_users():
                typer.echo(f"  - {user.username} ({user.email}) id={user.id} role={user.role.value}")

            typer.echo(f"POSTS (first {limit}):")
            for post in await store.list_posts(page=1, limit=limit):
                typer.echo(f"  - {post.title} id={post.id} author={post.author_id}")

            typer.echo(f"COMMENTS (first {limit}):")
            docs = await store.comments.find({}, {"_id": 0}, limit=limit).to_list(length=None)
            for doc in docs:
                typer.echo(f"  - \"{doc['text'][:50]}\" id={doc['id']} author={doc['author_id']}")

            orphans = await find_orphaned_posts(store)
            typer.echo("ORPHANED POSTS (author not in users):")
            for doc in orphans:
                typer.echo(f"  - \"{doc['title']}\" by unknown author {doc['author_id']}")
            typer.echo(f"  Total orphaned: {len(orphans)}")
        finally:
            client.close()

    asyncio.run(run())


if __name__ == "__main__":
    cli()
