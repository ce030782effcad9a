"""
HTTP surface tests: routing, role header handling and the error envelope.
"""


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_correlation_id_echoed(self, client):
        response = client.get("/api/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_correlation_id_generated(self, client):
        assert client.get("/api/health").headers.get("X-Correlation-ID")


class TestOrdersApi:
    def test_create_and_fetch(self, client, inspector):
        response = client.post(
            "/api/orders",
            json={"part_number": "PN-1", "required_thread": "NC38"},
            headers=inspector,
        )
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "QUEUED"
        fetched = client.get(f"/api/orders/{order['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["part_number"] == "PN-1"

    def test_operator_forbidden(self, client, operator):
        response = client.post(
            "/api/orders",
            json={"part_number": "PN-1", "required_thread": "NC38"},
            headers={**operator, "X-Correlation-ID": "cid-1"},
        )
        assert response.status_code == 403
        body = response.json()
        assert body["error"]["type"] == "role_not_permitted"
        assert body["correlation_id"] == "cid-1"
        assert body["actor_role"] == "OPERATOR"
        assert body["path"] == "/api/orders"
        assert body["method"] == "POST"

    def test_missing_role_header(self, client):
        response = client.post("/api/orders", json={"part_number": "PN", "required_thread": "T"})
        assert response.status_code == 400
        assert response.json()["error"]["type"] == "http_error"

    def test_unknown_role(self, client):
        response = client.post(
            "/api/orders",
            json={"part_number": "PN", "required_thread": "T"},
            headers={"X-Actor-Role": "ADMIN"},
        )
        assert response.status_code == 400

    def test_missing_fields(self, client, inspector):
        response = client.post("/api/orders", json={"part_number": " "}, headers=inspector)
        assert response.status_code == 422
        details = response.json()["error"]["details"]
        assert set(details["fields"]) == {"part_number", "required_thread"}

    def test_duplicate_id(self, seeded_client, inspector):
        response = seeded_client.post(
            "/api/orders",
            json={"id": "441", "part_number": "PN", "required_thread": "T"},
            headers=inspector,
        )
        assert response.status_code == 409

    def test_lists(self, seeded_client):
        assert [o["id"] for o in seeded_client.get("/api/orders").json()] == ["443", "442", "441"]
        today = seeded_client.get("/api/orders/today", params={"status": "QUEUED"}).json()
        assert [o["id"] for o in today] == ["443", "441"]

    def test_bad_status_filter(self, seeded_client):
        response = seeded_client.get("/api/orders", params={"status": "LOST"})
        assert response.status_code == 422
        assert response.json()["error"]["type"] == "validation_error"

    def test_unknown_order(self, client):
        response = client.get("/api/orders/nope")
        assert response.status_code == 404
        assert response.json()["error"]["details"] == {"order_id": "nope"}

    def test_advance(self, seeded_client, operator, inspector):
        response = seeded_client.post("/api/orders/441/advance", json={"status": "IN_PROGRESS"}, headers=operator)
        assert response.status_code == 200
        assert response.json()["status"] == "IN_PROGRESS"

        response = seeded_client.post("/api/orders/441/advance", json={"status": "DONE"}, headers=operator)
        assert response.status_code == 403

        response = seeded_client.post("/api/orders/443/advance", json={"status": "DONE"}, headers=inspector)
        assert response.status_code == 409

        response = seeded_client.post("/api/orders/441/advance", json={"status": "DONE"}, headers=inspector)
        assert response.json()["status"] == "DONE"


class TestGaugesApi:
    def test_catalog(self, seeded_client):
        gauges = {g["id"]: g for g in seeded_client.get("/api/gauges").json()}
        assert gauges["g1"]["status"] == "ok"
        assert gauges["g1"]["days_left"] == 30
        assert gauges["g2"]["status"] == "expired"

    def test_filters(self, seeded_client):
        assert [g["id"] for g in seeded_client.get("/api/gauges", params={"status": "EXPIRED"}).json()] == ["g2"]
        assert [g["id"] for g in seeded_client.get("/api/gauges", params={"q": "nc38"}).json()] == ["g2"]

    def test_broken_flag(self, seeded_client, operator, inspector):
        url = "/api/gauges/g1/broken"
        assert seeded_client.put(url, json={"is_broken": True}, headers=operator).status_code == 403
        response = seeded_client.put(url, json={"is_broken": True}, headers=inspector)
        assert response.json()["status"] == "broken"
        assert seeded_client.put("/api/gauges/g9/broken", json={"is_broken": True}, headers=inspector).status_code == 404


class TestPacketsApi:
    def test_open_packet(self, seeded_client):
        response = seeded_client.post("/api/packets", json={"orderId": "441"})
        assert response.status_code == 200
        packet = response.json()
        assert packet["orderId"] == "441"
        assert packet["sopLinks"] == ["SOP-THREAD-GENERAL.pdf", "SOP-NDT-MT-LEVEL2.pdf"]
        assert len(packet["checklist"]) == 4
        assert packet["meta"]["partNumber"] == "PN-8821"
        assert len(packet["report"]["dimensions"]) == 12

    def test_open_packet_requires_order_id(self, client):
        response = client.post("/api/packets", json={})
        assert response.status_code == 422
        assert response.json()["error"]["type"] == "validation_error"

    def test_report_round_trip(self, seeded_client, operator):
        report = seeded_client.get("/api/packets/441/report").json()
        report["header"]["description"] = "coupling BOX"
        report["dimensions"][0]["l1"] = "0.0021"
        report["dimensions"][0]["taperAvg"] = "0.064"
        response = seeded_client.put("/api/packets/441/report", json=report, headers=operator)
        assert response.status_code == 200
        assert response.json()["variant"] == "BOX"

        saved = seeded_client.get("/api/packets/441/report").json()
        assert saved["dimensions"][0]["l1"] == "0.0021"
        assert saved["dimensions"][0]["taperAvg"] == "0.064"

        evaluation = seeded_client.get("/api/packets/441/evaluation").json()
        assert evaluation["out_of_tolerance_count"] == 1
        assert evaluation["rows"][0]["out_of_tolerance_keys"] == ["l1"]

    def test_save_report_requires_role(self, seeded_client):
        report = seeded_client.get("/api/packets/441/report").json()
        assert seeded_client.put("/api/packets/441/report", json=report).status_code == 400

    def test_save_report_cannot_set_signatures(self, seeded_client, operator):
        report = seeded_client.get("/api/packets/441/report").json()
        report["signatures"] = {"inspectorName": "Forged", "inspectorSignedAt": "2026-03-10T06:30:00Z"}
        response = seeded_client.put("/api/packets/441/report", json=report, headers=operator)
        assert response.status_code == 200
        assert response.json()["signatures"]["inspectorSignedAt"] is None

        saved = seeded_client.get("/api/packets/441/report").json()["signatures"]
        assert saved["inspectorName"] == ""
        assert saved["inspectorSignedAt"] is None

    def test_stale_save_keeps_signature(self, seeded_client, operator, inspector):
        stale = seeded_client.get("/api/packets/441/report").json()
        seeded_client.post("/api/packets/441/sign", json={"name": "Bo"}, headers=inspector)
        stale["dimensions"][0]["l1"] = "0.001"
        assert seeded_client.put("/api/packets/441/report", json=stale, headers=operator).status_code == 200

        saved = seeded_client.get("/api/packets/441/report").json()
        assert saved["dimensions"][0]["l1"] == "0.001"
        assert saved["signatures"]["inspectorName"] == "Bo"
        assert saved["signatures"]["inspectorSignedAt"] is not None

    def test_evaluate_row(self, client):
        row = {"serial": "1", "l1": "-0.003", "lead": "0.004", "od": "x1", "standoff": "-."}
        response = client.post("/api/packets/evaluate-row", json=row)
        assert response.status_code == 200
        body = response.json()
        assert body["out_of_tolerance_keys"] == ["l1"]
        assert body["invalid_keys"] == ["od"]
        assert body["suggested_result"] == "REJECT"
        assert body["fields"]["standoff"]["is_partial"] is True
        assert body["fields"]["od"]["raw"] == "x1"

    def test_gauge_use_flow(self, seeded_client, operator, inspector):
        url = "/api/packets/441/gauges/g1"
        response = seeded_client.post(url, headers=operator)
        assert response.status_code == 200
        assert response.json()["statusAtUse"] == "ok"
        assert response.json()["confirmedByOperatorAt"] is not None

        assert seeded_client.post(f"{url}/verify", headers=operator).status_code == 403
        verified = seeded_client.post(f"{url}/verify", headers=inspector).json()
        assert verified["verifiedByInspectorAt"] is not None
        assert verified["confirmedByOperatorAt"] is not None

        packet = seeded_client.post("/api/packets", json={"orderId": "441"}).json()
        assert set(packet["gaugeUses"]) == {"g1"}

        assert seeded_client.delete(url).json() == {}
        assert seeded_client.post(f"{url}/verify", headers=inspector).status_code == 404

    def test_expired_gauge_conflict(self, seeded_client, inspector):
        response = seeded_client.post("/api/packets/441/gauges/g2", headers=inspector)
        assert response.status_code == 409
        assert response.json()["error"]["details"]["status"] == "expired"

    def test_sign(self, seeded_client, operator, inspector):
        response = seeded_client.post("/api/packets/441/sign", json={"name": "Ann"}, headers=operator)
        assert response.status_code == 200
        body = response.json()
        assert body["operatorName"] == "Ann"
        assert body["operatorSignedAt"] is not None
        assert body["inspectorSignedAt"] is None

        body = seeded_client.post("/api/packets/441/sign", json={}, headers=inspector).json()
        assert body["operatorName"] == "Ann"
        assert body["inspectorSignedAt"] is not None

    def test_sign_requires_role(self, seeded_client):
        assert seeded_client.post("/api/packets/441/sign", json={}).status_code == 400
