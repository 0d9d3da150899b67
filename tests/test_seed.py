from sqlalchemy.orm import sessionmaker
from guestreviews import seed
from guestreviews.models import Listing, Review


def test_seed_loads_fixture(db, monkeypatch):
    engine = db.get_bind()
    monkeypatch.setattr(seed, "engine", engine)
    monkeypatch.setattr(seed, "SessionLocal", sessionmaker(autocommit=False, autoflush=False, bind=engine))
    seed.main()
    seed.main()
    assert db.query(Review).count() == 7
    assert db.query(Listing).count() == 3
