from oasis import create_app, db
from oasis.models import Cabin, User

app = create_app()

# name, capacity, regular price, discount, description
CABINS = [
    ("001", 2, 250, 0, "Discover the ultimate luxury getaway for couples in the cozy wooden cabin 001."),
    ("002", 2, 350, 25, "Escape to the serenity of nature and indulge in luxury in our cozy cabin 002."),
    ("003", 4, 300, 0, "Experience luxury family living in our medium-sized wooden cabin 003."),
    ("004", 4, 500, 50, "Indulge in the ultimate luxury family vacation in this medium-sized cabin 004."),
    ("005", 6, 350, 0, "Enjoy a comfortable and cozy getaway with your group or family in cabin 005."),
    ("006", 6, 800, 100, "Experience the epitome of luxury with your group or family in cabin 006."),
    ("007", 8, 600, 100, "Accommodate your large group or multiple families in the spacious cabin 007."),
    ("008", 10, 1400, 0, "Experience the epitome of luxury and grandeur with your large group in cabin 008."),
]

DEMO_GUEST = ("guest@wildoasis.com", "Demo Guest", "oasis123")


# inserts cabins that don't exist yet and refreshes prices on the ones that do
def ensure_cabins():
    existing = {c.name: c for c in Cabin.query.all()}
    created = 0
    for name, capacity, price, discount, description in CABINS:
        cabin = existing.get(name)
        if cabin is None:
            db.session.add(Cabin(
                name=name,
                max_capacity=capacity,
                regular_price=price,
                discount=discount,
                description=description,
            ))
            created += 1
        else:
            cabin.max_capacity, cabin.regular_price, cabin.discount = capacity, price, discount
    db.session.commit()
    print(f"Seeded {created} cabins.")


def ensure_demo_guest():
    email, full_name, password = DEMO_GUEST
    if User.query.filter_by(email=email).first():
        print("Demo guest already exists.")
        return
    user = User(email=email, full_name=full_name)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    print(f"Created demo guest {email} / {password}")


with app.app_context():
    ensure_cabins()
    ensure_demo_guest()
