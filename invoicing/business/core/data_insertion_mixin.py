"""
Generic data insertion mixin for SQLAlchemy models
Provides from_dict and to_dict methods used by the seed loader and the JSON API

Lives in the business layer because it decides which columns are writable
(tenant ownership, timestamps) and how values are serialized for callers.
"""

from datetime import date, datetime
from sqlalchemy import inspect
from invoicing import db
from invoicing.logger import get_logger

logger = get_logger("invoicing.business.core.data_insertion")

PROTECTED_FIELDS = {'id', 'created_at', 'updated_at'}


class DataInsertionMixin:
    """Column-driven construction and serialization shared by every invoicing model"""

    @classmethod
    def from_dict(cls, data_dict, tenant_id=None, skip_fields=None):
        """
        Unsaved instance from a dict. Unknown keys, id and timestamps are ignored;
        tenant_id, when given, wins over any tenant_id in the dict.
        """
        skip = set(skip_fields or []) | PROTECTED_FIELDS

        mapper = inspect(cls)
        columns = {c.key for c in mapper.columns}

        filtered_data = {
            key: value
            for key, value in data_dict.items()
            if key in columns and key not in skip
        }

        if tenant_id is not None and 'tenant_id' in columns:
            filtered_data['tenant_id'] = tenant_id

        return cls(**filtered_data)

    def to_dict(self, exclude=None):
        """Column values keyed by column name; dates become ISO strings"""
        exclude = set(exclude or [])
        result = {}

        mapper = inspect(self.__class__)
        for column in mapper.columns:
            if column.key in exclude:
                continue
            value = getattr(self, column.key)
            if isinstance(value, (datetime, date)):
                result[column.key] = value.isoformat()
            else:
                result[column.key] = value

        return result

    @classmethod
    def bulk_create_from_dicts(cls, data_list, tenant_id=None, skip_fields=None):
        """
        Create multiple model instances from list of dictionaries and add them to the session.
        The caller owns the transaction.

        Returns:
            list: List of created model instances
        """
        instances = []
        for data_dict in data_list:
            instance = cls.from_dict(data_dict, tenant_id, skip_fields)
            db.session.add(instance)
            instances.append(instance)

        db.session.flush()
        logger.info(f"Created {len(instances)} {cls.__name__} instances")
        return instances
