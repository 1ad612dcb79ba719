from faker import Faker
from sqlalchemy.orm import Session

from videotube_service.db import SessionLocal, Base, engine
from videotube_service import models
from videotube_service.security import hash_password

fake = Faker()

Base.metadata.create_all(bind=engine)

DEFAULT_PASSWORD = "password"


def seed(n: int = 20):
    """Create ``n`` users, each with one published video and one tweet."""
    db: Session = SessionLocal()
    users = []
    try:
        password_hash = hash_password(DEFAULT_PASSWORD)
        for _ in range(n):
            u = models.User(
                username=fake.unique.user_name().lower(),
                email=fake.unique.email(),
                fullname=fake.name(),
                password_hash=password_hash,
                avatar=fake.image_url(),
            )
            db.add(u)
            users.append(u)
        db.flush()
        for u in users:
            db.add(models.Video(
                title=fake.sentence(nb_words=4),
                description=fake.text(max_nb_chars=200),
                video_file=f"/media/videos/{fake.uuid4()}.mp4",
                thumbnail=fake.image_url(),
                duration=float(fake.random_int(min=10, max=3600)),
                owner_id=u.id,
            ))
            db.add(models.Tweet(content=fake.sentence(), owner_id=u.id))
        db.commit()
        for u in users:
            db.refresh(u)
        return users
    finally:
        db.close()


if __name__ == "__main__":
    import sys, pathlib
    if __package__ is None:
        sys.path.append(str(pathlib.Path(__file__).resolve().parent.parent))
    n = int(sys.argv[1]) if len(sys.argv) > 1 else 20
    created = seed(n)
    for u in created:
        print({"id": u.id, "username": u.username, "email": u.email})
