#!/usr/bin/env python3
"""
Seed the database with demo users and listings and print a bearer token per user
"""
import asyncio
from datetime import datetime, timedelta

from rentfinder.core.auth import AuthService
from rentfinder.core.database import Base, SessionLocal, engine
from rentfinder.db.models import User as DBUser
from rentfinder.models.application import ApplicationCreate
from rentfinder.models.message import MessageCreate
from rentfinder.models.property import PropertyCreate
from rentfinder.modules.applications.service import ApplicationService
from rentfinder.modules.messages.service import MessageService
from rentfinder.modules.properties.service import PropertyService


DEMO_USERS = [
    {"email": "renter@demo.com", "first_name": "Alex", "last_name": "Johnson", "role": "RENTER"},
    {"email": "landlord@demo.com", "first_name": "Sarah", "last_name": "Chen", "role": "LANDLORD"},
    {"email": "buyer@demo.com", "first_name": "Michael", "last_name": "Rivera", "role": "BUYER"},
]

DEMO_PROPERTIES = [
    {
        "title": "Modern Loft in Downtown",
        "description": "Modern loft with floor-to-ceiling windows and an open-concept living area.",
        "type": "LOFT", "listingType": "RENT", "price": 2800, "deposit": 5600,
        "address": "123 Urban Ave", "city": "San Francisco", "state": "CA", "zipCode": "94102",
        "bedrooms": 2, "bathrooms": 2, "sqft": 1200, "yearBuilt": 2020,
        "parking": "1 Space Included", "petFriendly": True, "petDeposit": 500,
        "auraScoreOverall": 92, "auraScoreLifestyle": 95, "auraScoreConnectivity": 90,
        "auraScoreEnvironment": 88, "leaseTerm": 12,
        "features": ["Home Office", "Gym Access", "Rooftop Terrace", "Smart Home", "In-Unit Laundry"],
        "images": ["https://images.unsplash.com/photo-1502672260266-1c1ef2d93688?w=800"],
    },
    {
        "title": "Luxury Penthouse Suite",
        "description": "Top-floor penthouse with a private elevator and wraparound terrace.",
        "type": "PENTHOUSE", "listingType": "SALE", "price": 2450000,
        "address": "1 Skyline Blvd", "city": "San Francisco", "state": "CA", "zipCode": "94105",
        "bedrooms": 4, "bathrooms": 3.5, "sqft": 3800, "yearBuilt": 2018,
        "auraScoreOverall": 98, "auraScoreLifestyle": 97, "auraScoreConnectivity": 96,
        "auraScoreEnvironment": 95,
        "features": ["Private Elevator", "Wine Cellar", "Smart Home", "Concierge"],
        "images": ["https://images.unsplash.com/photo-1512917774080-9991f1c4c750?w=800"],
    },
    {
        "title": "Cozy Studio Near Transit",
        "description": "Efficient studio two blocks from the train with utilities included.",
        "type": "STUDIO", "listingType": "RENT", "price": 1650, "deposit": 1650,
        "address": "456 Market St", "city": "San Francisco", "state": "CA", "zipCode": "94103",
        "bedrooms": 0, "bathrooms": 1, "sqft": 450,
        "auraScoreOverall": 78, "auraScoreLifestyle": 75, "auraScoreConnectivity": 95,
        "auraScoreEnvironment": 70, "leaseTerm": 6,
        "features": ["In-Unit Laundry", "Bike Storage", "Utilities Included"],
        "images": ["https://images.unsplash.com/photo-1522708323590-d24dbb6b0267?w=800"],
    },
    {
        "title": "Victorian Townhouse",
        "description": "Restored townhouse with original details, garden and updated kitchen.",
        "type": "TOWNHOUSE", "listingType": "SALE", "price": 1875000,
        "address": "789 Heritage Ln", "city": "San Francisco", "state": "CA", "zipCode": "94117",
        "bedrooms": 3, "bathrooms": 2.5, "sqft": 2400, "yearBuilt": 1895,
        "auraScoreOverall": 89, "auraScoreLifestyle": 90, "auraScoreConnectivity": 85,
        "auraScoreEnvironment": 92,
        "features": ["Garden", "Home Office", "Fireplace"],
        "images": ["https://images.unsplash.com/photo-1568605114967-8130f3a36994?w=800"],
    },
    {
        "title": "Waterfront Condo",
        "description": "Condo with bay views, pool and a full-time doorman.",
        "type": "CONDO", "listingType": "RENT", "price": 4200, "deposit": 8400,
        "address": "500 Embarcadero", "city": "San Francisco", "state": "CA", "zipCode": "94111",
        "bedrooms": 3, "bathrooms": 2, "sqft": 1650, "petFriendly": True,
        "auraScoreOverall": 94, "auraScoreLifestyle": 93, "auraScoreConnectivity": 92,
        "auraScoreEnvironment": 96, "leaseTerm": 12,
        "features": ["Bay Views", "Pool", "Doorman", "Gym"],
        "images": ["https://images.unsplash.com/photo-1545324418-cc1a3fa10c00?w=800"],
    },
]


async def seed():
    print("=== Seeding database ===")

    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        users = {}
        for user_data in DEMO_USERS:
            user = db.query(DBUser).filter(DBUser.email == user_data["email"]).first()
            if user is None:
                user = DBUser(**user_data)
                db.add(user)
                db.commit()
            users[user.role] = user
        print(f"Users ready: {', '.join(u.email for u in users.values())}")

        landlord = users["LANDLORD"]
        service = PropertyService(db)
        available_from = datetime.now() + timedelta(days=30)

        created = []
        for property_data in DEMO_PROPERTIES:
            payload = PropertyCreate.model_validate({**property_data, "availableFrom": available_from})
            prop = await service.create_property(landlord, payload)
            print(f"  {prop.title} ({prop.listing_type.value}, {prop.city}) -> {prop.id}")
            created.append(prop)

        renter = users["RENTER"]
        rental = next(p for p in created if p.listing_type.value == "RENT")
        application = await ApplicationService(db).submit_application(
            renter.id, ApplicationCreate(property_id=rental.id, message="Interested in a 12 month lease", lease_term=12)
        )
        print(f"\nApplication {application.id} from {renter.email} for {rental.title}")
        await MessageService(db).send_message(
            renter.id, MessageCreate(receiver_id=landlord.id, property_id=rental.id, content="Is parking included?")
        )

        print("\nBearer tokens:")
        for user in users.values():
            token = AuthService.create_access_token(data={"sub": user.id, "email": user.email})
            print(f"  {user.email}: {token}")

    print("\n=== Seed complete ===")


if __name__ == '__main__':
    asyncio.run(seed())
