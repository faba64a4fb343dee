from flask_sqlalchemy import SQLAlchemy
from datetime import datetime

db = SQLAlchemy()

class KeyValue(db.Model):
    __tablename__ = 'kv_store'
    key = db.Column(db.String, primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
