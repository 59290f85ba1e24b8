from connectx.config import get_settings
from connectx.storage import Storage


def main():
    settings = get_settings()
    storage = Storage.from_url(settings.DATABASE_URL)
    storage.create_all()
    storage.dispose()
    print("✅ Tables created successfully")

if __name__ == "__main__":
    main()
