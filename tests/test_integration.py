"""
Integration Tests

End-to-end tests that verify the complete system works together.

Run with: python -m pytest tests/test_integration.py -v
"""

import asyncio
import time
import pytest
from respkv.protocol.values import NULL, OK, Array, BulkString, Error, Integer


@pytest.mark.asyncio
@pytest.mark.integration
class TestEndToEnd:
    """End-to-end integration tests."""

    async def test_complete_workflow(self, server, client):
        """Test a complete user workflow."""
        # Create multiple keys
        assert await client.send_command("SET user:1 alice") == OK
        assert await client.send_command("SET user:2 bob") == OK
        assert await client.send_command("SET user:3 charlie") == OK

        # Read all keys
        assert await client.send_command("GET user:1") == BulkString(b"alice")
        assert await client.send_command("GET user:2") == BulkString(b"bob")
        assert await client.send_command("GET user:3") == BulkString(b"charlie")

        # Check existence
        assert await client.send_command("EXISTS user:1 user:99") == Integer(1)

        # Update a key
        assert await client.send_command("SET user:1 alice_updated") == BulkString(b"alice")

        # Delete keys
        assert await client.send_command("DEL user:2 user:3 user:99") == Integer(2)
        assert await client.send_command("GET user:2") == NULL
        assert await client.send_command("EXISTS user:2") == Integer(0)

    async def test_expiration_through_server(self, server, client):
        """Test expiration functionality through server."""
        assert await client.send_command("SET tempkey tempvalue PX 100") == OK
        assert await client.send_command("GET tempkey") == BulkString(b"tempvalue")

        await asyncio.sleep(0.2)

        assert await client.send_command("GET tempkey") == NULL
        assert await client.send_command("EXISTS tempkey") == Integer(0)

    async def test_type_errors_leave_state_alone(self, server, client):
        await client.send_command("SET str hello")
        await client.send_command("RPUSH list a")

        assert isinstance(await client.send_command("LPUSH str x"), Error)
        assert isinstance(await client.send_command("INCR str"), Error)
        assert isinstance(await client.send_command("GET list"), Error)

        assert await client.send_command("GET str") == BulkString(b"hello")
        assert await client.send_command("SET list replaced") == Array((BulkString(b"a"),))

    async def test_save_and_load(self, server, client, snapshot_path):
        """Test SAVE then LOAD restores strings and flattens lists."""
        await client.send_command("SET name JOHN")
        await client.send_command("RPUSH list a b")

        assert await client.send_command("SAVE") == OK
        assert snapshot_path.exists()

        await client.send_command("SET name JANE")
        await client.send_command("SET extra 1")

        assert await client.send_command("LOAD") == OK
        assert await client.send_command("GET name") == BulkString(b"JOHN")
        assert await client.send_command("GET list") == BulkString(b"a b")
        assert await client.send_command("EXISTS extra") == Integer(0)

    async def test_error_recovery(self, server, client):
        """Test that server recovers from errors gracefully."""
        await client.send_command("INVALID")
        await client.send_command("SET")
        await client.send_command("GET")
        await client.send_raw(b"*1\r\n$x\r\n")

        # Server should still work normally
        assert await client.send_command("SET key value") == OK
        assert await client.send_command("GET key") == BulkString(b"value")


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.slow
class TestStress:
    """Stress tests for the system."""

    async def test_high_connection_count(self, server, client):
        """Test handling many concurrent connections."""
        num_connections = 100

        results = await asyncio.gather(*[
            client.send_command(f"RPUSH many {i}") for i in range(num_connections)
        ])

        assert sorted(r.value for r in results) == list(range(1, num_connections + 1))

    async def test_sustained_load(self, server, client):
        """Test sustained load over time."""
        duration = 2  # seconds

        async def load_generator(worker: int):
            end_time = time.time() + duration
            count = 0

            while time.time() < end_time:
                key = f"key:{worker}:{count}"
                await client.send_command(f"SET {key} value")
                await client.send_command(f"GET {key}")
                count += 1

            return count

        results = await asyncio.gather(*[load_generator(i) for i in range(5)])

        total_operations = sum(results) * 2  # Each iteration does SET and GET

        # Should handle reasonable throughput
        assert total_operations > 100
