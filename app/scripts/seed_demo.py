"""
Script to add demo data for the charity association
Run with: python -m app.scripts.seed_demo
"""
import random
from datetime import datetime, timedelta, date
from decimal import Decimal

from sqlalchemy.orm import Session

from app.config import settings
from app.db.session import Database
from app.models.expense import ApprovalStatus, Expense
from app.models.maintenance import Maintenance
from app.models.member import Member, MembershipStatus
from app.models.payment import Payment
from app.models.trip import Trip, TripStatus
from app.models.user import User, UserRole
from app.models.vehicle import Vehicle, VehicleStatus
from app.services.payment_service import PaymentService
from app.utils.auth import get_password_hash

CITIES = ["Riyadh", "Jeddah", "Dammam", "Mecca", "Medina"]
FIRST_NAMES = ["Ahmed", "Fatima", "Omar", "Aisha", "Khalid", "Mariam", "Yousef", "Noura"]
LAST_NAMES = ["Saleh", "Hassan", "Al-Harbi", "Al-Qahtani", "Al-Otaibi", "Al-Zahrani"]


def create_demo_staff(db: Session) -> User:
    """Create a staff account that collects payments and drives"""
    staff = db.query(User).filter(User.username == "staff").first()
    if staff:
        print("  ⏭️  Staff user already exists")
        return staff

    staff = User(
        username="staff",
        email="staff@alkhair.org",
        password_hash=get_password_hash("Staff@123"),
        full_name="Demo Staff",
        role=UserRole.STAFF
    )
    db.add(staff)
    db.commit()
    print("  ✅ Created staff user (staff@alkhair.org / Staff@123)")
    return staff


def create_demo_members(db: Session, count: int = 12):
    """Create demo members"""
    members = []
    for i in range(count):
        national_id = f"10{i:08d}"
        existing = db.query(Member).filter(Member.national_id == national_id).first()
        if existing:
            members.append(existing)
            continue

        member = Member(
            first_name=random.choice(FIRST_NAMES),
            last_name=random.choice(LAST_NAMES),
            date_of_birth=date(1950 + random.randint(0, 50), random.randint(1, 12), random.randint(1, 28)),
            national_id=national_id,
            phone=f"05{random.randint(10000000, 99999999)}",
            primary_address={
                "street": f"Street {i + 1}",
                "city": random.choice(CITIES),
                "country": "Saudi Arabia"
            },
            membership_status=random.choices(
                list(MembershipStatus), weights=[8, 2, 1, 1]
            )[0],
            join_date=datetime.utcnow() - timedelta(days=random.randint(0, 720))
        )
        db.add(member)
        members.append(member)

    db.commit()
    print(f"  ✅ {len(members)} members ready")
    return members


def create_demo_payments(db: Session, members, collector: User):
    """Create demo payments across the last months"""
    created = 0
    for member in members:
        for _ in range(random.randint(1, 3)):
            payment_date = datetime.utcnow() - timedelta(days=random.randint(0, 300))
            db.add(Payment(
                member_id=member.id,
                amount=Decimal(random.choice([50, 100, 150, 250, 500])),
                payment_date=payment_date,
                payment_method=random.choice(["cash", "bank_transfer", "card"]),
                payment_type=random.choice(["membership_fee", "donation", "event_fee"]),
                receipt_number=PaymentService.generate_receipt_number(db, payment_date),
                collected_by_id=collector.id
            ))
            # receipt numbering reads the previous number back
            db.flush()
            created += 1

    db.commit()
    print(f"  ✅ Created {created} payments")


def create_demo_expenses(db: Session, spender: User, approver: User):
    """Create demo expenses with mixed approval states"""
    categories = ["utilities", "rent", "salaries", "transportation", "supplies", "events"]
    for _ in range(10):
        status = random.choice(list(ApprovalStatus))
        db.add(Expense(
            category=random.choice(categories),
            amount=Decimal(random.randint(20, 2000)),
            date=datetime.utcnow() - timedelta(days=random.randint(0, 300)),
            purpose="Demo expense",
            approval_status=status,
            approved_by_id=approver.id if status != ApprovalStatus.PENDING else None,
            spent_by_id=spender.id
        ))
    db.commit()
    print("  ✅ Created 10 expenses")


def create_demo_fleet(db: Session, driver: User, members):
    """Create vehicles with completed trips and one maintenance record each"""
    fleet = [
        ("Toyota", "Hiace", 2019, "RUH-1001"),
        ("Hyundai", "H1", 2021, "RUH-1002"),
        ("Nissan", "Urvan", 2018, "RUH-1003"),
    ]
    for make, model, year, plate in fleet:
        if db.query(Vehicle).filter(Vehicle.license_plate == plate).first():
            print(f"  ⏭️  Skipping existing vehicle: {plate}")
            continue

        odometer = random.randint(20000, 90000)
        vehicle = Vehicle(make=make, model=model, year=year, license_plate=plate,
                          status=VehicleStatus.AVAILABLE, current_odometer=odometer, documents=[])
        db.add(vehicle)

        for _ in range(random.randint(2, 5)):
            distance = random.randint(10, 400)
            start = datetime.utcnow() - timedelta(days=random.randint(1, 200))
            db.add(Trip(
                vehicle=vehicle,
                driver=driver,
                passengers=random.sample(members, k=min(3, len(members))),
                start_date=start,
                end_date=start + timedelta(hours=random.randint(1, 10)),
                purpose="Member transport",
                start_odometer=odometer,
                end_odometer=odometer + distance,
                status=TripStatus.COMPLETED
            ))
            odometer += distance
        vehicle.current_odometer = odometer

        db.add(Maintenance(
            vehicle=vehicle,
            maintenance_type="oil_change",
            date=datetime.utcnow() - timedelta(days=random.randint(1, 100)),
            odometer=odometer,
            description="Routine service",
            cost=Decimal(random.randint(100, 600)),
            service_provider="City Garage",
            documents=[],
            completed_at=datetime.utcnow()
        ))
        print(f"  ✅ Created vehicle: {plate}")

    db.commit()


def main():
    print("🚀 Adding demo data...")
    print("=" * 50)
    database = Database(settings.DATABASE_URL, engine_options=settings.database_engine_options)
    database.connect(create_tables=True)
    db = database.session()

    try:
        admin = db.query(User).filter(User.role == UserRole.ADMIN).first()
        staff = create_demo_staff(db)
        members = create_demo_members(db)
        create_demo_payments(db, members, staff)
        create_demo_expenses(db, staff, admin or staff)
        create_demo_fleet(db, staff, members)
        print("\n✅ Demo data added successfully!")
    except Exception as e:
        db.rollback()
        print(f"❌ Error adding demo data: {str(e)}")
        raise
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    main()
