"""Architecture tests using pytest-archon.

These tests enforce the layering between the shared kernel, the service
template and the gateway.
"""

from pytest_archon import archrule


class TestSharedKernelBoundaries:
    """The shared kernel is the bottom layer."""

    def test_shared_kernel_does_not_import_upper_layers(self):
        """Shared kernel code must be usable by any service.

        It should not know about the service template or the gateway.
        """
        (
            archrule("shared_kernel_is_independent")
            .match("shared_kernel*")
            .should_not_import("service_template*", "gateway*")
            .check("shared_kernel")
        )

    def test_shared_kernel_does_not_import_infrastructure(self):
        """Settings and database adapters belong to infrastructure."""
        (
            archrule("shared_kernel_no_infrastructure")
            .match("shared_kernel*")
            .should_not_import("infrastructure.database*", "infrastructure.settings*")
            .check("shared_kernel")
        )


class TestServiceTemplateBoundaries:
    def test_service_template_does_not_import_gateway(self):
        """Services are built without knowing the gateway exists."""
        (
            archrule("service_template_no_gateway")
            .match("service_template*")
            .should_not_import("gateway*")
            .check("service_template")
        )


class TestGatewayBoundaries:
    def test_gateway_does_not_touch_storage(self):
        """The gateway forwards requests; it owns no persistence.

        Services it is assembled from may use storage, so only the
        gateway modules' own imports are checked.
        """
        (
            archrule("gateway_no_database")
            .match("gateway*")
            .should_not_import("infrastructure.database*", "psycopg2*")
            .check("gateway", only_direct_imports=True)
        )
