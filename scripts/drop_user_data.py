"""Drop all data for a specific user.

Usage:
    python scripts/drop_user_data.py <mongodb_url> <user_id> [--keep-account]
"""
import argparse
import asyncio

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient

# Collections keyed by the owning user's ID
USER_COLLECTIONS = ["time_entries", "running_timers", "task_comments", "team_members", "profiles"]


async def drop_user_data(mongodb_url: str, db_name: str, user_id: str, keep_account: bool) -> None:
    """Delete every document belonging to a user."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[db_name]

    for collection_name in USER_COLLECTIONS:
        result = await db[collection_name].delete_many({"user_id": user_id})
        print(f"Deleted {result.deleted_count} documents from {collection_name}")

    # Tasks stay in the workspace; just unassign them
    result = await db["tasks"].update_many({"assignee_id": user_id}, {"$set": {"assignee_id": None}})
    print(f"Unassigned {result.modified_count} tasks")

    if not keep_account:
        result = await db["users"].delete_one({"_id": ObjectId(user_id)})
        print(f"Deleted {result.deleted_count} users")

    client.close()
    print("Done!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Drop all data for a user")
    parser.add_argument("mongodb_url")
    parser.add_argument("user_id")
    parser.add_argument("--db-name", default="tasktrack")
    parser.add_argument("--keep-account", action="store_true", help="Keep the login itself")
    args = parser.parse_args()

    asyncio.run(drop_user_data(args.mongodb_url, args.db_name, args.user_id, args.keep_account))
