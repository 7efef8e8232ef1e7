from app.extensions import db
from app.models import Base
from main import create_app

app = create_app()

with app.app_context():
    Base.metadata.create_all(bind=db.engine)
    tables = ", ".join(sorted(Base.metadata.tables))

print(f"Tables created (existing ones left untouched): {tables}")
