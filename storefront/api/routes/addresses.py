"""
Shipping address routes

A user's first address becomes the default. Setting a default clears the
flag on the user's other addresses first.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from storefront.core.database import get_db
from storefront.core.exceptions import NotFoundError, StateConflictError
from storefront.models import Address, Order, User
from storefront.schemas.address import AddressCreate, AddressUpdate, AddressResponse
from storefront.api.deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_user_address(db: AsyncSession, user_id: int, address_id: int) -> Address:
    result = await db.execute(
        select(Address).where(Address.id == address_id, Address.user_id == user_id)
    )
    address = result.scalar_one_or_none()
    if not address:
        raise NotFoundError("Address not found", details={"address_id": address_id})
    return address


async def _unset_defaults(db: AsyncSession, user_id: int) -> None:
    await db.execute(
        update(Address)
        .where(Address.user_id == user_id, Address.is_default == True)  # noqa: E712
        .values(is_default=False)
    )


@router.get("", response_model=List[AddressResponse])
async def list_addresses(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Address)
        .where(Address.user_id == user.id)
        .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc())
    )
    return result.scalars().all()


@router.post("", response_model=AddressResponse, status_code=status.HTTP_201_CREATED)
async def create_address(
    data: AddressCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    existing = await db.scalar(
        select(func.count(Address.id)).where(Address.user_id == user.id)
    )
    is_default = data.is_default or not existing

    if is_default:
        await _unset_defaults(db, user.id)

    address = Address(
        user_id=user.id,
        street=data.street,
        city=data.city,
        state=data.state,
        zip_code=data.zip_code,
        country=data.country,
        is_default=is_default,
    )
    db.add(address)
    await db.commit()
    await db.refresh(address)
    return address


@router.get("/{address_id}", response_model=AddressResponse)
async def get_address(
    address_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _get_user_address(db, user.id, address_id)


@router.put("/{address_id}", response_model=AddressResponse)
async def update_address(
    address_id: int,
    data: AddressUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    address = await _get_user_address(db, user.id, address_id)

    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if updates.pop("is_default", False):
        await _unset_defaults(db, user.id)
        address.is_default = True

    for field, value in updates.items():
        setattr(address, field, value)

    await db.commit()
    await db.refresh(address)
    return address


@router.put("/{address_id}/set-default", response_model=AddressResponse)
async def set_default_address(
    address_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    address = await _get_user_address(db, user.id, address_id)

    await _unset_defaults(db, user.id)
    address.is_default = True
    await db.commit()
    await db.refresh(address)
    return address


@router.delete("/{address_id}")
async def delete_address(
    address_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete an address not referenced by any order."""
    address = await _get_user_address(db, user.id, address_id)

    in_use = await db.scalar(
        select(func.count(Order.id)).where(Order.shipping_address_id == address.id)
    )
    if in_use:
        raise StateConflictError(
            "Cannot delete address that is used in orders",
            code="ADDRESS_IN_USE",
            details={"orders": in_use},
        )

    was_default = address.is_default
    await db.delete(address)
    await db.flush()

    if was_default:
        result = await db.execute(
            select(Address)
            .where(Address.user_id == user.id)
            .order_by(Address.created_at.asc(), Address.id.asc())
            .limit(1)
        )
        oldest = result.scalar_one_or_none()
        if oldest:
            oldest.is_default = True

    await db.commit()
    logger.info(f"Address {address_id} deleted by user {user.id}")
    return {"message": "Address deleted successfully"}
