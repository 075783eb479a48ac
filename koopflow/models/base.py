"""Base model classes with tenant isolation through the author."""

from sqlalchemy.orm import defer


class AuthorScopedMixin:
    """
    Mixin for records owned by a user and visible to the user's organization.

    Records carry no organization column; the tenant is resolved by joining
    the author (``user_id``) to ``users.organization_id``. Callers always pass
    the tenant explicitly, both from request handlers and background jobs.

    Usage:
        records = Koopovereenkomst.organization_query(org_id).all()
        record = Koopovereenkomst.get_for_organization(record_id, org_id)
    """

    @classmethod
    def organization_query(cls, organization_id):
        """
        Returns query filtered to records authored by members of an organization.

        Raises:
            RuntimeError: If no organization is given
        """
        from koopflow.models.user import User

        if organization_id is None:
            raise RuntimeError(
                f"Cannot query {cls.__name__} without an organization"
            )

        return cls.query.join(User, cls.user_id == User.id).filter(
            User.organization_id == organization_id
        )

    @classmethod
    def get_for_organization(cls, id, organization_id):
        """Get record by ID within an organization, or None."""
        return cls.organization_query(organization_id).filter(cls.id == id).first()

    @classmethod
    def listing_for_organization(cls, organization_id, deferred=()):
        """All records for an organization, newest first, with heavy columns deferred."""
        query = cls.organization_query(organization_id)
        for column in deferred:
            query = query.options(defer(column))
        return query.order_by(cls.created_at.desc()).all()
