from datetime import datetime

from .extensions import db


class BaseModel(db.Model):
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )


class AiInstance(BaseModel):
    __tablename__ = "ai_instances"

    name = db.Column(db.String(255), nullable=True)
    connector = db.Column(db.String(64), nullable=False, index=True)
    tenant = db.Column(db.String(255), nullable=True, index=True)
    endpoint = db.Column(db.Text, nullable=False)
    apikey = db.Column(db.Text, nullable=True)
    model = db.Column(db.Text, nullable=True)
    infolink = db.Column(db.Text, nullable=True)
    customfield1 = db.Column(db.Text, nullable=True)
    customfield2 = db.Column(db.Text, nullable=True)
    customfield3 = db.Column(db.Text, nullable=True)
    customfield4 = db.Column(db.Text, nullable=True)
    customfield5 = db.Column(db.Text, nullable=True)


class ConnectorLog(BaseModel):
    __tablename__ = "connector_logs"

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    connector_type = db.Column(db.String(64), nullable=False)
    instance_id = db.Column(db.Integer, nullable=True)
    purpose = db.Column(db.String(32), nullable=True)
    request = db.Column(db.JSON, nullable=True)
    response = db.Column(db.JSON, nullable=True)
    success = db.Column(db.Boolean, nullable=False, default=True)
    error = db.Column(db.Text, nullable=True)
