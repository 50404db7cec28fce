"""TruckersMP VTC information proxy"""

from fastapi import APIRouter, Depends

from ..services.truckersmp_service import TruckersMPService, get_truckersmp_service

router = APIRouter(prefix="/api/vtc", tags=["VTC"])


# Registered before /{vtc_id} so "partners" is not taken for an ID
@router.get("/partners")
async def get_partners(truckersmp: TruckersMPService = Depends(get_truckersmp_service)):
    """Public information of partner VTCs"""
    return await truckersmp.get_partners_info()


@router.get("/{vtc_id}")
async def get_vtc(vtc_id: str, truckersmp: TruckersMPService = Depends(get_truckersmp_service)):
    """Members grouped into departments with role details"""
    return await truckersmp.get_processed_vtc_data(vtc_id)


@router.get("/{vtc_id}/members")
async def get_vtc_members(vtc_id: str, truckersmp: TruckersMPService = Depends(get_truckersmp_service)):
    return await truckersmp.get_vtc_members(vtc_id)


@router.get("/{vtc_id}/roles")
async def get_vtc_roles(vtc_id: str, truckersmp: TruckersMPService = Depends(get_truckersmp_service)):
    return await truckersmp.get_vtc_roles(vtc_id)


@router.get("/{vtc_id}/member/{member_id}")
async def get_member_details(
    vtc_id: str,
    member_id: str,
    truckersmp: TruckersMPService = Depends(get_truckersmp_service),
):
    return await truckersmp.get_member_details(vtc_id, member_id)
