"""Development seeder: users with tokens, articles and related resources."""
import asyncio
import argparse
import random
import time
from app.database import engine, async_session, Base
from app.models import User, Article, Related

RELATED_TYPES = ["link", "video", "note", "image", "reference"]
TOPICS = ["onboarding", "billing", "troubleshooting", "security", "release notes",
          "integrations", "accounts", "reporting"]

async def seed(small: bool = False, reset: bool = False):
    num_users = 5 if small else 50
    num_articles = 50 if small else 2000
    max_related = 3 if small else 6

    print(f"Seeding: {num_users} users, {num_articles} articles, up to {max_related} related each")
    start = time.perf_counter()

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        users = []
        for i in range(num_users):
            user = User(
                username=f"user_{i:04d}",
                display_name=f"User {i}",
                token=f"token-{i:04d}",
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users (token = token-<nnnn>)")

        total_related = 0
        batch_size = 500
        for batch_start in range(0, num_articles, batch_size):
            batch_end = min(batch_start + batch_size, num_articles)
            articles = []
            for i in range(batch_start, batch_end):
                article = Article(
                    name=f"Article {i}: {random.choice(TOPICS).title()}",
                    user_id=random.choice(users).id,
                )
                session.add(article)
                articles.append(article)
            await session.flush()

            for article in articles:
                for n in range(random.randint(0, max_related)):
                    kind = random.choice(RELATED_TYPES)
                    session.add(Related(
                        type=kind,
                        url=f"https://example.com/{kind}/{article.id}-{n}" if kind != "note" else "",
                        content=f"{kind.title()} about {article.name}" if kind == "note" else "",
                        article_id=article.id,
                        user_id=article.user_id,
                    ))
                    total_related += 1
            await session.flush()

            print(f"  Batch {batch_start}-{batch_end}: articles created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Articles: {num_articles}")
    print(f"  Related: {total_related}")


def main():
    parser = argparse.ArgumentParser(description="Seed the articles database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (50 articles)")
    parser.add_argument("--reset", action="store_true", help="Drop all tables before seeding")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small, reset=args.reset))


if __name__ == "__main__":
    main()
