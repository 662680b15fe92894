"""Demo authors and courses loaded when ``seed_data`` is enabled."""

from datetime import date
from typing import List, Tuple
from uuid import UUID

from .models import Author, Course


BERRY_ID = UUID("d28888e9-2ba9-473a-a40f-e38cb54f9b35")
NANCY_ID = UUID("da2fd609-d754-4feb-8acd-c4f9ff13ba96")
ELI_ID = UUID("2902b665-1190-4c70-9915-b9c2d7680450")
ARNOLD_ID = UUID("102b566b-ba1f-404c-b2df-e2cde39ade09")
SEABURY_ID = UUID("5b3621c0-7b12-4e80-9c8b-3398cba7ee05")
RUTHERFORD_ID = UUID("2aadd2df-7caf-45ab-9355-7f6332985a87")
ATHERTON_ID = UUID("2ee49fe3-edf2-4f91-8409-3eb25ce6ca51")


def seed_library() -> Tuple[List[Author], List[Course]]:
    authors = [
        Author(id=BERRY_ID, first_name="Berry", last_name="Griffin Beak Eldritch",
               date_of_birth=date(1650, 7, 23), main_category="Ships"),
        Author(id=NANCY_ID, first_name="Nancy", last_name="Swashbuckler Rye",
               date_of_birth=date(1668, 5, 21), main_category="Rum"),
        Author(id=ELI_ID, first_name="Eli", last_name="Ivory Bones Sweet",
               date_of_birth=date(1701, 12, 16), main_category="Singing"),
        Author(id=ARNOLD_ID, first_name="Arnold", last_name="The Unseen Stafford",
               date_of_birth=date(1702, 3, 6), main_category="Singing"),
        Author(id=SEABURY_ID, first_name="Seabury", last_name="Toxic Reyson",
               date_of_birth=date(1690, 11, 23), main_category="Maps"),
        Author(id=RUTHERFORD_ID, first_name="Rutherford", last_name="Fearless Venus",
               date_of_birth=date(1723, 4, 5), main_category="General debauchery"),
        Author(id=ATHERTON_ID, first_name="Atherton", last_name="Bones Crow Ridley",
               date_of_birth=date(1721, 10, 11), main_category="Rum"),
    ]
    courses = [
        Course(id=UUID("5b1c2b4d-48c7-402a-80c3-cc796ad49c6b"), author_id=BERRY_ID,
               title="Commandeering a Ship Without Getting Caught",
               description="Commandeering a ship in rough waters isn't easy. "
                           "Commandeering it without getting caught is even harder."),
        Course(id=UUID("d8663e5e-7494-4f81-8739-6e0de1bea7ee"), author_id=BERRY_ID,
               title="Overthrowing Mutiny",
               description="In this course, the author provides tips to avoid, or if needed, "
                           "overthrow pirate mutiny."),
        Course(id=UUID("d173e20d-159e-4127-9ce9-b0ac2564ad97"), author_id=NANCY_ID,
               title="Avoiding Brawls While Drinking as Much Rum as You Desire",
               description="Every good pirate loves rum, but it also has a tendency to get you "
                           "into trouble. In this course you'll learn how to avoid that."),
        Course(id=UUID("40ff5488-fdab-45b5-bc3a-14302d59869a"), author_id=ELI_ID,
               title="Singalong Pirate Hits",
               description="In this course you'll learn how to sing all-time favourite pirate songs "
                           "without sounding like you actually know the lyrics."),
        Course(id=UUID("7aeee6b1-6f9e-4d0e-9b4c-4a8a5d1c7f01"), author_id=SEABURY_ID,
               title="Reading Maps in the Dark",
               description="Charts, stars and a shaky lantern: finding the treasure anyway."),
    ]
    return authors, courses
