"""
Endpoints de Fornecedores.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from faturamento.core.dependencies import DBSession, EscritorioID
from faturamento.db.transaction import retry_on_conflict
from faturamento.schemas.base import APIResponse, PaginatedResponse
from faturamento.schemas.cliente import VendorCreate, VendorResponse
from faturamento.services.vendor_service import VendorService

router = APIRouter(prefix="/fornecedores", tags=["Fornecedores"])


@router.post(
    "",
    response_model=APIResponse[VendorResponse],
    status_code=status.HTTP_201_CREATED,
)
async def criar_fornecedor(
    dados: VendorCreate,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[VendorResponse]:
    """Cadastra fornecedor (CNPJ obrigatório e único no escritório)."""
    service = VendorService(db, escritorio_id)
    vendor = await retry_on_conflict(service.criar, dados)

    return APIResponse(
        success=True,
        data=VendorResponse.model_validate(vendor),
        message="Fornecedor cadastrado com sucesso",
    )


@router.get("", response_model=PaginatedResponse[VendorResponse])
async def listar_fornecedores(
    db: DBSession,
    escritorio_id: EscritorioID,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[VendorResponse]:
    service = VendorService(db, escritorio_id)
    vendors = await service.listar(skip, limit)

    return PaginatedResponse(
        success=True,
        data=[VendorResponse.model_validate(v) for v in vendors],
        total=len(vendors),
        page=skip // limit + 1,
        page_size=limit,
    )


@router.get("/{vendor_id}", response_model=APIResponse[VendorResponse])
async def obter_fornecedor(
    vendor_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[VendorResponse]:
    service = VendorService(db, escritorio_id)
    vendor = await service.buscar_por_id(vendor_id)

    return APIResponse(success=True, data=VendorResponse.model_validate(vendor))
