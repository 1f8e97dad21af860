import httpx

from gcplog.config import MetadataSettings
from gcplog.services.metadata_service import MetadataService, StaticResolver


def make_service(handler, host="metadata.test"):
    return MetadataService(MetadataSettings(host=host), transport=httpx.MockTransport(handler))


class TestMetadataService:
    def test_returns_project_id(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["flavor"] = request.headers.get("Metadata-Flavor")
            return httpx.Response(200, text="my-project-123\n")

        assert make_service(handler).resolve() == "my-project-123"
        assert seen["url"] == "http://metadata.test/computeMetadata/v1/project/project-id"
        assert seen["flavor"] == "Google"

    def test_non_success_returns_none(self):
        service = make_service(lambda request: httpx.Response(404, text="not found"))
        assert service.resolve() is None

    def test_connection_error_returns_none(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        assert make_service(handler).resolve() is None

    def test_timeout_returns_none(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        assert make_service(handler).resolve() is None

    def test_blank_body_returns_none(self):
        service = make_service(lambda request: httpx.Response(200, text="  \n"))
        assert service.resolve() is None

    def test_host_from_environment(self, monkeypatch):
        monkeypatch.setenv("GCE_METADATA_HOST", "127.0.0.1:9999")
        seen = {}

        def handler(request):
            seen["host"] = request.url.netloc.decode()
            return httpx.Response(200, text="p")

        service = MetadataService(transport=httpx.MockTransport(handler))
        assert service.resolve() == "p"
        assert seen["host"] == "127.0.0.1:9999"


class TestStaticResolver:
    def test_returns_value(self):
        assert StaticResolver("fixed").resolve() == "fixed"
        assert StaticResolver(None).resolve() is None
