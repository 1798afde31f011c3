"""
ApiService tests with proper mocking.
"""
import pytest
import asyncio
from unittest.mock import AsyncMock, patch, MagicMock
import aiohttp

from storefront.config import config
from storefront.services.api_service import ApiService, ApiResponse
from storefront.errors import ApiError, NetworkError, RetryExhaustedError


def create_mock_response(status=200, json_data=None):
    """Helper to create a properly mocked async response."""
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=json_data if json_data is not None else {})
    return mock_response


def make_service(*responses, token=None):
    service = ApiService(base_url="http://api.test/api", token=token)
    mock_session = MagicMock()
    mock_session.request = AsyncMock(side_effect=list(responses))
    service.session = mock_session
    return service, mock_session


@pytest.mark.asyncio
async def test_initialize_session():
    """Test session initialization."""
    service = ApiService()
    assert service.session is None
    
    with patch('aiohttp.ClientSession') as mock_session_class:
        mock_session = AsyncMock()
        mock_session_class.return_value = mock_session
        
        await service.initialize()
        await service.initialize()
        
        assert service.session is mock_session
        mock_session_class.assert_called_once()
        
        await service.close()
        mock_session.close.assert_awaited_once()
        assert service.session is None


@pytest.mark.asyncio
async def test_get_products_success():
    payload = {
        "success": True,
        "data": [{"id": "p1", "name": "Whey"}],
        "pagination": {"page": 1, "limit": 100, "total": 1, "pages": 1}
    }
    service, session = make_service(create_mock_response(200, payload), token="jwt")
    
    response = await service.get_products({"limit": 100, "inStock": True, "brand": "", "category": None})
    
    assert response.success
    assert response.data == [{"id": "p1", "name": "Whey"}]
    assert response.pagination["total"] == 1
    
    args, kwargs = session.request.call_args
    assert args == ("GET", "http://api.test/api/products")
    assert kwargs["params"] == {"limit": "100", "inStock": "true"}
    assert kwargs["headers"]["Authorization"] == "Bearer jwt"


@pytest.mark.asyncio
async def test_anonymous_requests_have_no_auth_header():
    service, session = make_service(create_mock_response(200, {"success": True}))
    
    await service.cart_sync([{"productId": "p1", "quantity": 1, "variant": None}])
    
    args, kwargs = session.request.call_args
    assert args == ("POST", "http://api.test/api/cart/sync")
    assert "Authorization" not in kwargs["headers"]
    assert kwargs["json"] == {"items": [{"productId": "p1", "quantity": 1, "variant": None}]}


@pytest.mark.asyncio
async def test_error_status_raises_api_error():
    service, _ = make_service(create_mock_response(
        400, {"success": False, "message": "Insufficient stock", "errors": [{"field": "quantity"}]}
    ))
    
    with pytest.raises(ApiError) as exc_info:
        await service.cart_add("p1", 10)
    
    assert exc_info.value.status == 400
    assert exc_info.value.message == "Insufficient stock"
    assert exc_info.value.errors == [{"field": "quantity"}]
    assert str(exc_info.value) == "[400] Insufficient stock"


@pytest.mark.asyncio
async def test_error_status_is_not_retried():
    service, session = make_service(create_mock_response(404, {"message": "Product not found"}))
    
    with pytest.raises(ApiError):
        await service.get_product("missing")
    
    assert session.request.call_count == 1


@pytest.mark.asyncio
async def test_error_without_message_uses_default():
    service, _ = make_service(create_mock_response(500, {}))
    
    with pytest.raises(ApiError) as exc_info:
        await service.cart_clear()
    
    assert exc_info.value.message == "Something went wrong"


@pytest.mark.asyncio
async def test_network_error_on_write_is_not_retried():
    service, session = make_service(aiohttp.ClientConnectionError("refused"))
    
    with pytest.raises(NetworkError):
        await service.cart_update("p1", 2)
    
    assert session.request.call_count == 1


@pytest.mark.asyncio
async def test_get_retries_network_errors():
    service, session = make_service(
        aiohttp.ClientConnectionError("refused"),
        asyncio.TimeoutError(),
        create_mock_response(200, {"success": True, "data": {"items": []}})
    )
    
    with patch.object(config, "MAX_RETRIES", 2), \
         patch('storefront.utils.retry.asyncio.sleep', new=AsyncMock()):
        response = await service.get_cart()
    
    assert response.success
    assert session.request.call_count == 3


@pytest.mark.asyncio
async def test_get_retries_exhausted():
    service, session = make_service(*[aiohttp.ClientConnectionError("refused")] * 2)
    
    with patch.object(config, "MAX_RETRIES", 1), \
         patch('storefront.utils.retry.asyncio.sleep', new=AsyncMock()):
        with pytest.raises(RetryExhaustedError):
            await service.cart_stats()
    
    assert session.request.call_count == 2


@pytest.mark.asyncio
async def test_request_cancelled_before_start():
    service, session = make_service(create_mock_response(200, {"success": True}))
    cancel = asyncio.Event()
    cancel.set()
    
    response = await service.get_products(cancel_event=cancel)
    
    assert response.cancelled
    assert not response.success
    session.request.assert_not_called()


@pytest.mark.asyncio
async def test_request_cancelled_in_flight():
    async def slow_request(*args, **kwargs):
        await asyncio.sleep(10)
        return create_mock_response(200, {"success": True})
    
    service = ApiService(base_url="http://api.test/api")
    service.session = MagicMock()
    service.session.request = slow_request
    cancel = asyncio.Event()
    asyncio.get_running_loop().call_later(0.01, cancel.set)
    
    response = await service.get_products(cancel_event=cancel)
    
    assert response == ApiResponse.cancelled_response()


@pytest.mark.asyncio
async def test_non_envelope_payload():
    service, _ = make_service(create_mock_response(200, [1, 2, 3]))
    
    response = await service.get_product_reviews("p1")
    
    assert response.success
    assert response.data == [1, 2, 3]


@pytest.mark.asyncio
async def test_add_product_review_body():
    service, session = make_service(create_mock_response(201, {"success": True}))
    
    await service.add_product_review("p1", 5)
    
    assert session.request.call_args[1]["json"] == {"rating": 5}


@pytest.mark.asyncio
async def test_health_check():
    service, _ = make_service(create_mock_response(200, {"success": True}))
    assert await service.health_check() is True
    
    service, _ = make_service(aiohttp.ClientConnectionError("refused"))
    assert await service.health_check() is False


def test_token_handling():
    service = ApiService(token="abc")
    assert service.is_authenticated
    
    service.set_token("")
    assert not service.is_authenticated
    assert "Authorization" not in service._headers()
