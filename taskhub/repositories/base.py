"""
Base CRUD Repository Pattern
Generic repository that applies tenant scoping, soft delete and audit
stamping to every read and write it performs.
"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.sql import Select
import structlog

from taskhub.core.context import CurrentCaller
from taskhub.core.database import Base
from taskhub.core.exceptions import ConcurrencyConflictError, TenantMismatchError
from taskhub.models.base import AUDIT_FIELDS, utcnow

logger = structlog.get_logger()

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

# Client input may name the owning tenant on create (checked against the
# caller); every other audit field is server-controlled.
PROTECTED_FIELDS = AUDIT_FIELDS - {"tenant_id"}


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Base CRUD repository with tenant-scoped database operations

    Every method takes the caller context explicitly. Reads are filtered
    to the caller's tenant (when it has one) and always exclude
    soft-deleted rows; deletes are logical tombstones.
    """

    def __init__(self, model: Type[ModelType]):
        """
        Initialize CRUD repository

        Args:
            model: SQLAlchemy model class
        """
        self.model = model

    @property
    def is_tenant_owned(self) -> bool:
        return hasattr(self.model, "tenant_id")

    @property
    def is_soft_deletable(self) -> bool:
        return hasattr(self.model, "is_deleted")

    def tenant_filter(self, ctx: CurrentCaller):
        return self.model.tenant_id == ctx.tenant_id

    def scoped_query(self, ctx: CurrentCaller, query: Optional[Select] = None) -> Select:
        """
        Restrict a query to rows the caller may see

        The soft-delete filter is unconditional. The tenant filter is
        skipped only for a caller without a tenant (system maintenance).
        """
        if query is None:
            query = select(self.model)

        if self.is_soft_deletable:
            query = query.where(self.model.is_deleted == False)  # noqa: E712

        if self.is_tenant_owned and ctx.has_tenant:
            query = query.where(self.tenant_filter(ctx))

        return query

    def _apply_filters(self, query: Select, filters: Optional[Dict[str, Any]]) -> Select:
        for field, value in (filters or {}).items():
            if field in PROTECTED_FIELDS or field == "tenant_id" or not hasattr(self.model, field):
                continue
            column = getattr(self.model, field)
            if isinstance(value, list):
                query = query.where(column.in_(value))
            elif isinstance(value, dict) and "like" in value:
                query = query.where(column.ilike(f"%{value['like']}%"))
            else:
                query = query.where(column == value)
        return query

    async def get(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        id: Union[UUID, str],
    ) -> Optional[ModelType]:
        """
        Get a single visible record by ID

        Records owned by another tenant are indistinguishable from
        records that do not exist.
        """
        try:
            query = self.scoped_query(ctx).where(self.model.id == id)
            result = await db.execute(query)
            record = result.scalar_one_or_none()

            if record:
                logger.debug("Record retrieved", model=self.model.__name__, id=id)
            else:
                logger.debug("Record not found", model=self.model.__name__, id=id)

            return record

        except Exception as e:
            logger.error("Error retrieving record", model=self.model.__name__, id=id, error=str(e))
            raise

    async def get_multi(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
    ) -> List[ModelType]:
        """
        Get multiple visible records with pagination and filtering

        Args:
            db: Database session
            ctx: Caller context
            skip: Number of records to skip
            limit: Maximum number of records to return
            filters: Dictionary of field filters
            order_by: Field to order by, "-" prefix for descending

        Returns:
            List of model instances
        """
        try:
            query = self._apply_filters(self.scoped_query(ctx), filters)

            if order_by:
                field = order_by.lstrip("-")
                if hasattr(self.model, field):
                    column = getattr(self.model, field)
                    query = query.order_by(column.desc() if order_by.startswith("-") else column)
            elif hasattr(self.model, "created_at"):
                query = query.order_by(self.model.created_at.desc())

            query = query.offset(skip).limit(limit)

            result = await db.execute(query)
            records = list(result.scalars().all())

            logger.debug(
                "Multiple records retrieved",
                model=self.model.__name__,
                count=len(records),
                skip=skip,
                limit=limit,
            )

            return records

        except Exception as e:
            logger.error("Error retrieving multiple records", model=self.model.__name__, error=str(e))
            raise

    async def count(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        filters: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Count visible records with optional filtering"""
        try:
            query = self.scoped_query(ctx, select(func.count(self.model.id)))
            query = self._apply_filters(query, filters)

            result = await db.execute(query)
            count = result.scalar() or 0

            logger.debug("Record count", model=self.model.__name__, count=count)
            return count

        except Exception as e:
            logger.error("Error counting records", model=self.model.__name__, error=str(e))
            raise

    def stamp_create(self, ctx: CurrentCaller, db_obj: ModelType) -> None:
        """
        Apply tenant and creation stamps to a new instance

        Raises:
            TenantMismatchError: instance names a tenant other than the caller's
        """
        if self.is_tenant_owned and ctx.has_tenant:
            if db_obj.tenant_id is None:
                db_obj.tenant_id = ctx.tenant_id
            elif db_obj.tenant_id != ctx.tenant_id:
                logger.warning(
                    "Cross-tenant insert rejected",
                    model=self.model.__name__,
                    caller_tenant=str(ctx.tenant_id),
                    requested_tenant=str(db_obj.tenant_id),
                )
                raise TenantMismatchError()

        if hasattr(db_obj, "created_at"):
            db_obj.created_at = utcnow()
        if hasattr(db_obj, "created_by"):
            db_obj.created_by = ctx.user_id
        if hasattr(db_obj, "updated_at"):
            db_obj.updated_at = None
            db_obj.updated_by = None
        if self.is_soft_deletable:
            db_obj.is_deleted = False
            db_obj.deleted_at = None
            db_obj.deleted_by = None

    def stamp_update(self, ctx: CurrentCaller, db_obj: ModelType) -> None:
        if hasattr(db_obj, "updated_at"):
            db_obj.updated_at = utcnow()
            db_obj.updated_by = ctx.user_id

    def check_writable(self, ctx: CurrentCaller, db_obj: ModelType) -> None:
        """Reject writes to an instance owned by another tenant"""
        if not (self.is_tenant_owned and ctx.has_tenant):
            return
        if db_obj.tenant_id is not None and db_obj.tenant_id != ctx.tenant_id:
            logger.warning(
                "Cross-tenant write rejected",
                model=self.model.__name__,
                id=str(db_obj.id),
                caller_tenant=str(ctx.tenant_id),
            )
            raise TenantMismatchError()

    async def _persist(self, db: AsyncSession, db_obj: ModelType, *, commit: bool, action: str) -> None:
        try:
            if commit:
                await db.commit()
                await db.refresh(db_obj)
            else:
                await db.flush()
        except StaleDataError:
            if commit:
                await db.rollback()
            logger.warning("Concurrent modification detected", model=self.model.__name__, action=action)
            raise ConcurrencyConflictError() from None
        except Exception as e:
            if commit:
                await db.rollback()
            logger.error(f"Error on {action}", model=self.model.__name__, error=str(e))
            raise

    async def create(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        obj_in: Union[CreateSchemaType, Dict[str, Any]],
        commit: bool = True,
    ) -> ModelType:
        """
        Create a new record from client input

        Server-controlled fields in the input are discarded.
        """
        if isinstance(obj_in, dict):
            obj_in_data = dict(obj_in)
        else:
            obj_in_data = obj_in.model_dump()

        data = {k: v for k, v in obj_in_data.items() if k not in PROTECTED_FIELDS and hasattr(self.model, k)}
        return await self.add(db, ctx, self.model(**data), commit=commit)

    async def add(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        db_obj: ModelType,
        *,
        commit: bool = True,
    ) -> ModelType:
        """Stamp and insert an instance built by a service"""
        self.stamp_create(ctx, db_obj)
        db.add(db_obj)
        await self._persist(db, db_obj, commit=commit, action="create")

        logger.info("Record created", model=self.model.__name__, id=db_obj.id)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]],
        expected_version: Optional[int] = None,
        commit: bool = True,
    ) -> ModelType:
        """
        Update an existing record

        Args:
            db: Database session
            ctx: Caller context
            db_obj: Existing model instance
            obj_in: Pydantic model or dict with update data
            expected_version: Version the client last read, for versioned models
            commit: Whether to commit the transaction

        Raises:
            TenantMismatchError: record or input belongs to another tenant
            ConcurrencyConflictError: record changed since it was read
        """
        self.check_writable(ctx, db_obj)

        if isinstance(obj_in, dict):
            update_data = dict(obj_in)
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        # Ownership never changes after insert
        requested_tenant = update_data.pop("tenant_id", None)
        if requested_tenant is not None and requested_tenant != db_obj.tenant_id:
            raise TenantMismatchError()

        if expected_version is not None and hasattr(db_obj, "version"):
            if db_obj.version != expected_version:
                logger.warning(
                    "Stale version on update",
                    model=self.model.__name__,
                    id=str(db_obj.id),
                    expected=expected_version,
                    current=db_obj.version,
                )
                raise ConcurrencyConflictError()

        for field, value in update_data.items():
            if field in PROTECTED_FIELDS:
                continue
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        self.stamp_update(ctx, db_obj)
        await self._persist(db, db_obj, commit=commit, action="update")

        logger.info("Record updated", model=self.model.__name__, id=db_obj.id)
        return db_obj

    async def delete(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        *,
        id: Union[UUID, str],
        commit: bool = True,
    ) -> Optional[ModelType]:
        """
        Soft delete a visible record by ID

        Returns:
            Tombstoned model instance or None if not visible
        """
        db_obj = await self.get(db, ctx, id)
        if not db_obj:
            logger.warning("Record not found for deletion", model=self.model.__name__, id=id)
            return None

        return await self.remove(db, ctx, db_obj, commit=commit)

    async def remove(
        self,
        db: AsyncSession,
        ctx: CurrentCaller,
        db_obj: ModelType,
        *,
        commit: bool = True,
    ) -> ModelType:
        """Tombstone an instance; rows are never physically deleted here"""
        self.check_writable(ctx, db_obj)

        db_obj.is_deleted = True
        db_obj.deleted_at = utcnow()
        db_obj.deleted_by = ctx.user_id

        await self._persist(db, db_obj, commit=commit, action="delete")

        logger.info("Record deleted", model=self.model.__name__, id=db_obj.id, deleted_by=ctx.user_id)
        return db_obj
