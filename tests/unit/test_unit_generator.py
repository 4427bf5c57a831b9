"""Unit tests for systemd unit file generation."""

from collections.abc import Callable

from svcman.generators.unit import format_environment, generate_unit_file
from svcman.models.app import ResourceLimits, RestartPolicy, ServiceDescriptor


class TestFormatEnvironment:
    """Tests for Environment= rendering."""

    def test_one_entry_per_variable(self) -> None:
        assert format_environment({"A": "1", "B": "two"}) == ['A="1"', 'B="two"']

    def test_escapes_double_quotes(self) -> None:
        assert format_environment({"MSG": 'say "hi"'}) == ['MSG="say \\"hi\\""']


class TestGenerateUnitFile:
    """Tests for generate_unit_file."""

    def test_minimal_unit(self, descriptor: ServiceDescriptor) -> None:
        unit = generate_unit_file(descriptor)

        assert unit == (
            "[Unit]\n"
            "Description=Test api service\n"
            "After=network.target\n"
            "\n"
            "[Service]\n"
            "Type=simple\n"
            "WorkingDirectory=/srv/api\n"
            "ExecStart=python -m app\n"
            "Restart=always\n"
            "RestartSec=3\n"
            "StandardOutput=journal\n"
            "StandardError=journal\n"
            "\n"
            "[Install]\n"
            "WantedBy=multi-user.target\n"
        )

    def test_optional_fields(self, make_descriptor: Callable[..., ServiceDescriptor]) -> None:
        descriptor = make_descriptor(
            env={"PORT": "8080", "NAME": 'a "b"'},
            env_file="/srv/api/.env",
            user="www-data",
            group="www-data",
            after=["network.target", "postgresql.service"],
            requires=["postgresql.service"],
            restart=RestartPolicy.ON_FAILURE,
            restart_sec=1.5,
        )
        unit = generate_unit_file(descriptor)

        assert "After=network.target postgresql.service\n" in unit
        assert "Requires=postgresql.service\n" in unit
        assert 'Environment=PORT="8080"\n' in unit
        assert 'Environment=NAME="a \\"b\\""\n' in unit
        assert "EnvironmentFile=/srv/api/.env\n" in unit
        assert "User=www-data\n" in unit
        assert "Group=www-data\n" in unit
        assert "Restart=on-failure\n" in unit
        assert "RestartSec=1.5\n" in unit

    def test_absent_optionals_are_omitted(self, make_descriptor: Callable[..., ServiceDescriptor]) -> None:
        unit = generate_unit_file(make_descriptor(after=[]))

        for key in ("After=", "Requires=", "User=", "Group=", "EnvironmentFile=", "Environment="):
            assert f"\n{key}" not in unit
        for key in ("MemoryMax", "CPUQuota", "LimitNOFILE", "LimitNPROC"):
            assert key not in unit

    def test_resource_limits(self, make_descriptor: Callable[..., ServiceDescriptor]) -> None:
        limits = ResourceLimits(memory=512, cpu=50, nofile=4096, nproc=64)
        unit = generate_unit_file(make_descriptor(limits=limits))

        assert "MemoryMax=512M\n" in unit
        assert "CPUQuota=50%\n" in unit
        assert "LimitNOFILE=4096\n" in unit
        assert "LimitNPROC=64\n" in unit

    def test_partial_limits(self, make_descriptor: Callable[..., ServiceDescriptor]) -> None:
        unit = generate_unit_file(make_descriptor(limits=ResourceLimits(cpu=150)))

        assert "CPUQuota=150%\n" in unit
        assert "MemoryMax" not in unit

    def test_never_restart_policy(self, make_descriptor: Callable[..., ServiceDescriptor]) -> None:
        unit = generate_unit_file(make_descriptor(restart=RestartPolicy.NEVER))
        assert "Restart=no\n" in unit

    def test_user_target(self, descriptor: ServiceDescriptor) -> None:
        unit = generate_unit_file(descriptor, wanted_by="default.target")
        assert unit.endswith("[Install]\nWantedBy=default.target\n")

    def test_deterministic(self, make_descriptor: Callable[..., ServiceDescriptor]) -> None:
        descriptor = make_descriptor(env={"B": "2", "A": "1"}, limits=ResourceLimits(memory=64))
        assert generate_unit_file(descriptor) == generate_unit_file(descriptor)
