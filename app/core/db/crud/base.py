from typing import (
    Any,
    TypeVar,
    Generic,
    Type,
    Sequence,
    Callable,
)
from uuid import UUID

from sqlalchemy import (
    SQLColumnExpression,
    and_,
    update as sa_update,
    delete as sa_delete,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.sql import Delete, Select, Update

from app.core.exceptions.types import DatabaseException

T = TypeVar("T")


class BaseDB(Generic[T]):
    def __init__(self, model: Type[T]):
        self.model = model

    async def _finish(self, session: AsyncSession, commit_self: bool) -> None:
        if commit_self:
            await session.commit()
        else:
            await session.flush()

    async def get_by_id(
        self, session: AsyncSession, id: UUID, options: list[Any] | None = None
    ) -> T | None:
        """
        Asynchronously retrieves an instance of the model by its primary key.

        Args:
            session (AsyncSession): The asynchronous database session to use for the query.
            id (UUID): The primary key value of the model instance to retrieve.
            options (list[Any] | None, optional): SQLAlchemy loader options. Defaults to None.

        Returns:
            T | None: The model instance if found, otherwise None.

        Raises:
            DatabaseException: If an error occurs while querying the database.
        """
        try:
            stmt: Select = (
                select(self.model)
                .options(*(options or []))
                .where(getattr(self.model, "id") == id)
            )
            result = await session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error retrieving {self.model.__name__} with ID {id}: {str(e)}"
            ) from e

    async def get_all(
        self,
        session: AsyncSession,
        filters: Sequence[Any] | None = None,
        order_by: Sequence[Any] | None = None,
        limit: int | None = None,
    ) -> Sequence[T]:
        """
        Retrieve filtered, ordered results from the DB.

        Args:
            session: Async SQLAlchemy session.
            filters: SQLAlchemy filter expressions combined with AND.
            order_by: Columns/expressions to order by.
            limit: Max number of records to return.

        Returns:
            A sequence of model instances.

        Raises:
            DatabaseException: If an error occurs while querying the database.
        """
        try:
            stmt = select(self.model)

            if filters:
                stmt = stmt.filter(*filters)

            if order_by:
                stmt = stmt.order_by(*order_by)

            if limit:
                stmt = stmt.limit(limit)

            result = await session.execute(stmt)
            return result.scalars().all()

        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error retrieving all {self.model.__name__} records: {str(e)}"
            ) from e

    async def create(
        self,
        session: AsyncSession,
        data: dict,
        validate: Callable[[dict], dict] | None = None,
        commit_self: bool = True,
    ) -> T:
        """
        Asynchronously creates and persists a new instance of the model using the provided data.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for database operations.
            data (dict): A dictionary of fields and values to initialize the model instance.
            validate (Callable[[dict], dict] | None, optional): Optional callable to validate or transform the input data.
            commit_self (bool, optional): If True, commits the transaction; otherwise only flushes. Defaults to True.

        Returns:
            T: The newly created and persisted model instance.

        Raises:
            DatabaseException: If an error occurs while creating the model instance or committing the transaction.
        """
        try:
            if validate:
                data = validate(data)

            obj = self.model(**data)
            session.add(obj)

            await self._finish(session, commit_self)

            await session.refresh(obj)
            return obj
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseException(
                f"Error creating {self.model.__name__}: {str(e)}"
            ) from e

    async def update_by_conditions(
        self,
        session: AsyncSession,
        conditions: Sequence[SQLColumnExpression],
        updates: dict,
        commit_self: bool = True,
    ) -> int:
        """
        Asynchronously updates records that match the given conditions in a single statement.

        Guarding the WHERE clause on the current values makes the update a
        compare-and-set: concurrent writers cannot both succeed.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for the update operation.
            conditions (Sequence[SQLColumnExpression]): SQLAlchemy expressions selecting the records to update.
            updates (dict): Column values or SQL expressions to set.
            commit_self (bool, optional): If True, commits the transaction; otherwise flushes. Defaults to True.

        Returns:
            int: The number of records updated.

        Raises:
            DatabaseException: If an error occurs while updating the records or committing the transaction.
        """
        try:
            stmt: Update = (
                sa_update(self.model).where(and_(*conditions)).values(**updates)
            )
            result = await session.execute(stmt)

            await self._finish(session, commit_self)

            return result.rowcount  # type: ignore[attr-defined]
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error updating {self.model.__name__} with conditions {conditions}: {str(e)}"
            ) from e

    async def delete_by_conditions(
        self,
        session: AsyncSession,
        conditions: Sequence[SQLColumnExpression],
        commit_self: bool = True,
    ) -> int:
        """
        Asynchronously hard-deletes records that match the given conditions.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for the delete operation.
            conditions (Sequence[SQLColumnExpression]): SQLAlchemy expressions selecting the records to delete.
            commit_self (bool, optional): If True, commits the transaction; otherwise flushes. Defaults to True.

        Returns:
            int: The number of records deleted.

        Raises:
            DatabaseException: If an error occurs while deleting the records or committing the transaction.
        """
        try:
            stmt: Delete = sa_delete(self.model).where(and_(*conditions))
            result = await session.execute(stmt)

            await self._finish(session, commit_self)

            return result.rowcount  # type: ignore[attr-defined]
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error deleting {self.model.__name__} with conditions {conditions}: {str(e)}"
            ) from e
