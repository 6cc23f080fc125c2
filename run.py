import argparse
import asyncio
import getpass

from src.storefront.utils.database import AsyncSessionLocal, init_models


async def _create_admin(email: str, password: str, name: str) -> None:
    from src.storefront.crud.admin_users import create_admin, get_admin_by_email

    async with AsyncSessionLocal() as db:
        if await get_admin_by_email(db, email):
            raise SystemExit(f"Admin '{email}' already exists")
        user = await create_admin(db, email=email, password=password, name=name)
        print(f"Admin created: {user.email}")


async def _seed_menus() -> None:
    from src.storefront.crud.sample_menus import seed_sample_menus

    async with AsyncSessionLocal() as db:
        handles = await seed_sample_menus(db)
    print(f"Sample menus created: {', '.join(handles) or 'none (already present)'}")


def main():
    parser = argparse.ArgumentParser(description="PC shop storefront management")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the API server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")

    sub.add_parser("init-db", help="create missing tables")

    admin = sub.add_parser("create-admin", help="create an admin user")
    admin.add_argument("--email", required=True)
    admin.add_argument("--name", default="")

    sub.add_parser("seed-menus", help="create sample header/footer/mobile/sidebar menus")

    args = parser.parse_args()

    if args.command == "serve":
        import uvicorn

        uvicorn.run("src.storefront.app:app", host=args.host, port=args.port, reload=args.reload)
    elif args.command == "init-db":
        asyncio.run(init_models())
        print("Tables created")
    elif args.command == "create-admin":
        password = getpass.getpass("Password: ")
        asyncio.run(_create_admin(args.email, password, args.name))
    elif args.command == "seed-menus":
        asyncio.run(_seed_menus())

if __name__ == '__main__':
    main()
