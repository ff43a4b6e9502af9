import asyncio

from aiohttp import WSMsgType
from aiohttp.test_utils import TestClient
from marshmallow.fields import String

from kiosk.models.util import AccessoryStatus, CycleStatus
from kiosk.serializer import JSendSchema, JSendStatus
from kiosk.serializer.fields import Many
from kiosk.serializer.models import CycleSchema, CycleScanSchema, RentalSchema, AccessorySchema
from tests.util import auth_header


class TestCyclesView:

    async def test_get_cycles(self, client: TestClient, random_staff, random_cycle_factory):
        """Assert that you can get a list of all cycles, ordered by code."""
        await random_cycle_factory()
        await random_cycle_factory(status=CycleStatus.MAINTENANCE)

        response = await client.get('/api/v1/cycles', headers=auth_header(random_staff))
        response_schema = JSendSchema.of(cycles=Many(CycleSchema()))
        response_data = response_schema.load(await response.json())
        assert response_data["status"] == JSendStatus.SUCCESS
        assert [cycle["code"] for cycle in response_data["data"]["cycles"]] == ["C101", "C102"]

    async def test_get_cycles_by_status(self, client: TestClient, random_staff, random_cycle_factory):
        await random_cycle_factory()
        await random_cycle_factory(status=CycleStatus.MAINTENANCE)

        response = await client.get('/api/v1/cycles?status=maintenance', headers=auth_header(random_staff))
        cycles = (await response.json())["data"]["cycles"]
        assert [cycle["code"] for cycle in cycles] == ["C102"]

    async def test_get_cycles_bad_status(self, client: TestClient, random_staff):
        response = await client.get('/api/v1/cycles?status=parked', headers=auth_header(random_staff))
        assert response.status == 400
        assert (await response.json())["status"] == JSendStatus.FAIL

    async def test_get_cycles_anonymous(self, client: TestClient):
        """Assert that the cycles can only be seen by signed in staff."""
        response = await client.get('/api/v1/cycles')
        assert response.status == 401

    async def test_get_cycles_bad_token(self, client: TestClient):
        """Assert that a token that does not verify is turned away."""
        response = await client.get('/api/v1/cycles', headers={"Authorization": "Bearer not-a-token"})
        assert response.status == 401
        assert (await response.json())["data"]["message"] == "Supplied authorization token is invalid."

    async def test_get_cycles_deactivated(self, client: TestClient, random_staff_factory):
        staff = await random_staff_factory(is_active=False)
        response = await client.get('/api/v1/cycles', headers=auth_header(staff))
        assert response.status == 401


class TestCycleView:

    async def test_scan_available(self, client: TestClient, random_staff, random_cycle, helmet,
                                  random_accessory_factory):
        """Assert that scanning an available cycle offers the accessories on the shelf."""
        await random_accessory_factory("Basket", status=AccessoryStatus.DAMAGED)

        response = await client.get(f'/api/v1/cycles/{random_cycle.tag_id}', headers=auth_header(random_staff))
        response_data = JSendSchema.of(scan=CycleScanSchema()).load(await response.json())

        scan = response_data["data"]["scan"]
        assert scan["view"] == "available"
        assert scan["cycle"]["id"] == random_cycle.id
        assert [accessory["name"] for accessory in scan["accessories"]] == ["Helmet"]
        assert "rental" not in scan

    async def test_scan_by_code(self, client: TestClient, random_staff, random_cycle):
        """Assert that the painted code can be typed in when the tag will not scan."""
        response = await client.get(f'/api/v1/cycles/{random_cycle.code}', headers=auth_header(random_staff))
        assert response.status == 200
        assert (await response.json())["data"]["scan"]["cycle"]["tag_id"] == random_cycle.tag_id

    async def test_scan_in_use(self, client: TestClient, random_staff, random_rental, random_cycle, clock):
        """Assert that scanning a rented cycle shows its rental and running price."""
        clock.advance(minutes=20)

        response = await client.get(f'/api/v1/cycles/{random_cycle.tag_id}', headers=auth_header(random_staff))
        scan = (await response.json())["data"]["scan"]

        assert scan["view"] == "in_use"
        assert scan["rental"]["id"] == random_rental.id
        assert scan["rental"]["is_active"]
        assert scan["estimate"]["minutes"] == 20
        assert scan["estimate"]["amount"] == "20.00"
        assert scan["estimate"]["elapsed"] == "20m 0s"

    async def test_scan_flagged_rented_cycle(self, client: TestClient, random_staff, random_rental, random_cycle,
                                             clock):
        """Assert that a rented cycle flagged for maintenance still scans as its rental."""
        response = await client.put(
            f'/api/v1/cycles/{random_cycle.tag_id}/status', json={"status": "maintenance"},
            headers=auth_header(random_staff)
        )
        assert response.status == 200
        clock.advance(minutes=10)

        response = await client.get(f'/api/v1/cycles/{random_cycle.tag_id}', headers=auth_header(random_staff))
        scan = (await response.json())["data"]["scan"]

        assert scan["view"] == "in_use"
        assert scan["cycle"]["status"] == "maintenance"
        assert scan["rental"]["id"] == random_rental.id
        assert scan["estimate"]["amount"] == "10.00"
        assert "accessories" not in scan

    async def test_scan_maintenance(self, client: TestClient, random_staff, random_cycle_factory):
        cycle = await random_cycle_factory(status=CycleStatus.MAINTENANCE)
        response = await client.get(f'/api/v1/cycles/{cycle.tag_id}', headers=auth_header(random_staff))
        scan = (await response.json())["data"]["scan"]
        assert scan["view"] == "maintenance"
        assert "accessories" not in scan

    async def test_scan_unknown_tag(self, client: TestClient, random_staff, database):
        response = await client.get('/api/v1/cycles/0badc0ffee', headers=auth_header(random_staff))
        assert response.status == 404
        assert (await response.json())["status"] == JSendStatus.FAIL


class TestCycleRentalsView:

    async def test_get_history(self, client: TestClient, random_staff, random_rental, random_cycle, rental_manager,
                               clock):
        await rental_manager.finish(random_cycle)
        clock.advance(hours=1)
        await rental_manager.start(random_cycle, random_staff, "Asha Rao")

        response = await client.get(
            f'/api/v1/cycles/{random_cycle.tag_id}/rentals', headers=auth_header(random_staff)
        )
        rentals = JSendSchema.of(rentals=Many(RentalSchema())).load(await response.json())["data"]["rentals"]
        assert len(rentals) == 2
        assert rentals[0]["is_active"]
        assert rentals[1]["id"] == random_rental.id


class TestCycleRentalView:

    async def test_start_rental(self, client: TestClient, random_staff, random_cycle, helmet):
        """Assert that a rental can be started from the scan screen."""
        response = await client.post(
            f'/api/v1/cycles/{random_cycle.tag_id}/rental',
            json={"customer_name": "Asha Rao", "phone": "9800000001", "accessory_ids": [helmet.id]},
            headers=auth_header(random_staff)
        )
        assert response.status == 201

        response_data = JSendSchema.of(rental=RentalSchema()).load(await response.json())
        rental = response_data["data"]["rental"]
        assert rental["cycle_id"] == random_cycle.id
        assert rental["customer_name"] == "Asha Rao"
        assert rental["is_active"]
        assert [accessory["accessory_id"] for accessory in rental["accessories"]] == [helmet.id]
        assert (await client.get(rental["url"], headers=auth_header(random_staff))).status == 200
        assert client.app["rental_manager"].is_in_use(random_cycle)

    async def test_start_rental_without_name(self, client: TestClient, random_staff, random_cycle):
        response = await client.post(
            f'/api/v1/cycles/{random_cycle.tag_id}/rental', json={"phone": "9800000001"},
            headers=auth_header(random_staff)
        )
        assert response.status == 400
        assert "customer_name" in (await response.json())["data"]["errors"]

    async def test_start_rental_blank_name(self, client: TestClient, random_staff, random_cycle):
        response = await client.post(
            f'/api/v1/cycles/{random_cycle.tag_id}/rental', json={"customer_name": "  "},
            headers=auth_header(random_staff)
        )
        assert response.status == 400

    async def test_start_rented_cycle(self, client: TestClient, random_staff, random_rental, random_cycle):
        """Assert that a cycle cannot go out twice."""
        response = await client.post(
            f'/api/v1/cycles/{random_cycle.tag_id}/rental', json={"customer_name": "Asha Rao"},
            headers=auth_header(random_staff)
        )
        assert response.status == 409
        assert (await response.json())["data"]["rental_id"] == random_rental.id

    async def test_start_with_missing_accessory(self, client: TestClient, random_staff, random_cycle):
        response = await client.post(
            f'/api/v1/cycles/{random_cycle.tag_id}/rental', json={"customer_name": "Asha Rao", "accessory_ids": [99]},
            headers=auth_header(random_staff)
        )
        assert response.status == 404
        assert (await response.json())["data"]["accessory_ids"] == [99]
        assert not client.app["rental_manager"].is_in_use(random_cycle)

    async def test_get_current_rental(self, client: TestClient, random_staff, random_rental, random_cycle, clock):
        clock.advance(minutes=5)
        response = await client.get(f'/api/v1/cycles/{random_cycle.tag_id}/rental', headers=auth_header(random_staff))
        rental = JSendSchema.of(rental=RentalSchema()).load(await response.json())["data"]["rental"]
        assert rental["id"] == random_rental.id
        assert rental["elapsed_minutes"] == 5

    async def test_get_no_current_rental(self, client: TestClient, random_staff, random_cycle):
        response = await client.get(f'/api/v1/cycles/{random_cycle.tag_id}/rental', headers=auth_header(random_staff))
        assert response.status == 404
        assert (await response.json())["data"]["message"] == "The cycle has no active rental."


class TestCycleEndRentalView:

    async def test_end_rental(self, client: TestClient, random_staff, random_rental, random_cycle, clock):
        """Assert that ending a rental prices it and frees the cycle."""
        clock.advance(minutes=20)

        response = await client.patch(
            f'/api/v1/cycles/{random_cycle.tag_id}/rental/end', headers=auth_header(random_staff)
        )
        assert response.status == 200

        data = JSendSchema.of(rental=RentalSchema(), summary=String()).load(await response.json())["data"]
        assert not data["rental"]["is_active"]
        assert data["rental"]["duration_minutes"] == 20
        assert data["rental"]["final_amount"] == data["rental"]["calculated_amount"]
        assert data["summary"].startswith(f"{random_cycle.code}: ")
        assert data["summary"].endswith("20 min, ₹20.00")
        assert not client.app["rental_manager"].is_in_use(random_cycle)

    async def test_end_twice(self, client: TestClient, random_staff, random_rental, random_cycle):
        url = f'/api/v1/cycles/{random_cycle.tag_id}/rental/end'
        assert (await client.patch(url, headers=auth_header(random_staff))).status == 200

        response = await client.patch(url, headers=auth_header(random_staff))
        assert response.status == 404


class TestCycleLiveRentalView:

    async def test_live_estimate(self, client: TestClient, random_staff, random_rental, random_cycle, clock,
                                 rental_manager):
        """Assert that the socket sends estimates and closes once the rental ends."""
        clock.advance(minutes=16)

        socket = await client.ws_connect(
            f'/api/v1/cycles/{random_cycle.tag_id}/rental/live', headers=auth_header(random_staff)
        )
        estimate = await socket.receive_json(timeout=1)
        assert estimate == {"rental_id": random_rental.id, "amount": "20.00", "minutes": 16, "elapsed": "16m 0s"}
        assert len(client.app["live_sockets"]) == 1

        await rental_manager.finish(random_cycle)

        message = await socket.receive(timeout=1)
        while message.type == WSMsgType.TEXT:
            message = await socket.receive(timeout=1)
        assert message.type in (WSMsgType.CLOSE, WSMsgType.CLOSING, WSMsgType.CLOSED)

        await socket.close()
        for _ in range(20):
            if not client.app["live_sockets"]:
                break
            await asyncio.sleep(0.01)
        assert not client.app["live_sockets"]

    async def test_live_without_rental(self, client: TestClient, random_staff, random_cycle):
        response = await client.get(
            f'/api/v1/cycles/{random_cycle.tag_id}/rental/live', headers=auth_header(random_staff)
        )
        assert response.status == 404


class TestCycleMaintenanceView:

    async def test_toggle(self, client: TestClient, random_staff, random_cycle):
        url = f'/api/v1/cycles/{random_cycle.tag_id}/maintenance'

        response = await client.patch(url, headers=auth_header(random_staff))
        assert (await response.json())["data"]["cycle"]["status"] == "maintenance"

        response = await client.patch(url, headers=auth_header(random_staff))
        assert (await response.json())["data"]["cycle"]["status"] == "available"

    async def test_toggle_rented_cycle(self, client: TestClient, random_staff, random_rental, random_cycle,
                                       rental_manager):
        """Assert that a cycle out on a rental is not taken into maintenance by the toggle."""
        response = await client.patch(
            f'/api/v1/cycles/{random_cycle.tag_id}/maintenance', headers=auth_header(random_staff)
        )
        assert response.status == 409
        assert (await response.json())["data"]["message"] == "The cycle is out on a rental."
        assert rental_manager.is_in_use(random_cycle)

    async def test_toggle_inactive_cycle(self, client: TestClient, random_staff, random_cycle_factory):
        cycle = await random_cycle_factory(status=CycleStatus.INACTIVE)
        response = await client.patch(f'/api/v1/cycles/{cycle.tag_id}/maintenance', headers=auth_header(random_staff))
        assert response.status == 409


class TestCycleStatusView:

    async def test_set_status(self, client: TestClient, random_staff, random_cycle):
        response = await client.put(
            f'/api/v1/cycles/{random_cycle.tag_id}/status', json={"status": "inactive"},
            headers=auth_header(random_staff)
        )
        assert response.status == 200
        assert (await response.json())["data"]["cycle"]["status"] == "inactive"

    async def test_set_in_use(self, client: TestClient, random_staff, random_cycle):
        """Assert that a cycle only goes in use by being rented."""
        response = await client.put(
            f'/api/v1/cycles/{random_cycle.tag_id}/status', json={"status": "in_use"},
            headers=auth_header(random_staff)
        )
        assert response.status == 409

    async def test_set_rented_cycle(self, client: TestClient, random_staff, random_rental, random_cycle):
        """Assert that a rented cycle can be flagged for maintenance, but nothing else."""
        url = f'/api/v1/cycles/{random_cycle.tag_id}/status'

        response = await client.put(url, json={"status": "available"}, headers=auth_header(random_staff))
        assert response.status == 409

        response = await client.put(url, json={"status": "maintenance"}, headers=auth_header(random_staff))
        assert response.status == 200

    async def test_set_unknown_status(self, client: TestClient, random_staff, random_cycle):
        response = await client.put(
            f'/api/v1/cycles/{random_cycle.tag_id}/status', json={"status": "parked"},
            headers=auth_header(random_staff)
        )
        assert response.status == 400


class TestAccessoriesView:

    async def test_get_accessories(self, client: TestClient, random_staff, helmet, random_accessory_factory):
        await random_accessory_factory("Basket", status=AccessoryStatus.DAMAGED)

        response = await client.get('/api/v1/accessories', headers=auth_header(random_staff))
        accessories = JSendSchema.of(accessories=Many(AccessorySchema())).load(await response.json())
        assert [accessory["name"] for accessory in accessories["data"]["accessories"]] == ["Basket", "Helmet"]

        response = await client.get('/api/v1/accessories?available=true', headers=auth_header(random_staff))
        assert [accessory["name"] for accessory in (await response.json())["data"]["accessories"]] == ["Helmet"]

    async def test_report_accessory(self, client: TestClient, random_staff, helmet):
        """Assert that an accessory can be reported damaged in one tap."""
        response = await client.post(f'/api/v1/accessories/{helmet.id}/damages', headers=auth_header(random_staff))
        assert response.status == 201

        damage = (await response.json())["data"]["damage"]
        assert damage["cycle_id"] is None
        assert damage["status"] == "pending"
        assert damage["accessories"] == [{"id": helmet.id, "name": "Helmet"}]

    async def test_report_missing_accessory(self, client: TestClient, random_staff):
        response = await client.post('/api/v1/accessories/99/damages', headers=auth_header(random_staff))
        assert response.status == 404
