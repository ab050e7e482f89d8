"""Create initial admin user
Run with: python -m app.scripts.create_admin
"""
import os
import traceback

from app.config import settings
from app.db.session import Database
from app.models.user import User, UserRole
from app.utils.auth import get_password_hash

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@alkhair.org")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin@123")


def create_admin_user(database: Database):
    """Create or reset the association admin user"""
    db = database.session()

    try:
        existing_admin = db.query(User).filter(User.email == ADMIN_EMAIL).first()

        if existing_admin:
            print("⚠️  Admin user already exists!")
            print(f"   Username: {existing_admin.username}")
            print(f"   Email: {existing_admin.email}")
            print(f"   Role: {existing_admin.role.value}")
            print(f"\n🔄 Resetting password to: {ADMIN_PASSWORD}")

            existing_admin.password_hash = get_password_hash(ADMIN_PASSWORD)
            existing_admin.role = UserRole.ADMIN
            db.commit()

            print("✅ Admin password reset successfully!")
            return

        admin = User(
            username=ADMIN_USERNAME,
            email=ADMIN_EMAIL,
            password_hash=get_password_hash(ADMIN_PASSWORD),
            full_name="Association Administrator",
            role=UserRole.ADMIN
        )

        db.add(admin)
        db.commit()
        db.refresh(admin)

        print("✅ Admin user created successfully!")
        print(f"   ID: {admin.id}")
        print("\n🔐 Login Credentials:")
        print(f"   Email: {ADMIN_EMAIL}")
        print(f"   Password: {ADMIN_PASSWORD}")

    except Exception as e:
        db.rollback()
        print(f"❌ Error creating admin user: {str(e)}")
        traceback.print_exc()
    finally:
        db.close()


if __name__ == "__main__":
    print(f"🚀 Creating {settings.APP_NAME} Admin User...")
    print("=" * 50)
    database = Database(settings.DATABASE_URL, engine_options=settings.database_engine_options)
    database.connect(create_tables=True)
    create_admin_user(database)
    database.dispose()
