import pytest
from datetime import datetime
from models import Campaign, Ad, Analytics, PlatformCampaign, PlatformNameEnum

VALID_CAMPAIGN = {
    "name": "Holiday Promo",
    "type": "text",
    "status": "scheduled",
    "platforms": ["google", "facebook"],
}

def test_create_and_list_campaigns(auth_client, user):
    response = auth_client.post('/api/campaigns', json=VALID_CAMPAIGN)
    assert response.status_code == 201
    created = response.get_json()["campaign"]
    assert created["user_id"] == user.id
    assert created["platforms"] == ["google", "facebook"]
    assert created["performance"] is None

    response = auth_client.get('/api/campaigns')
    assert response.status_code == 200
    assert [c["id"] for c in response.get_json()["campaigns"]] == [created["id"]]

def test_create_campaign_invalid(auth_client):
    response = auth_client.post('/api/campaigns', json={"name": "", "type": "video", "status": "active"})
    assert response.status_code == 400
    data = response.get_json()
    assert data["message"] == "Invalid input"
    assert {"name", "type"} <= set(data["errors"])

def test_list_only_own_campaigns(auth_client, user, create_user, create_campaign):
    create_campaign(user, name="Mine")
    create_campaign(create_user(username="other"), name="Theirs")

    names = [c["name"] for c in auth_client.get('/api/campaigns').get_json()["campaigns"]]
    assert names == ["Mine"]

def test_get_campaign_not_found_and_forbidden(auth_client, create_user, create_campaign):
    foreign = create_campaign(create_user(username="other"))

    response = auth_client.get('/api/campaigns/9999')
    assert response.status_code == 404
    assert response.get_json()["message"] == "Campaign not found"

    response = auth_client.get(f'/api/campaigns/{foreign.id}')
    assert response.status_code == 403
    assert response.get_json()["message"] == "Forbidden"

def test_update_campaign_partial(auth_client, user, create_campaign):
    campaign = create_campaign(user, status='scheduled', platforms=['google'])

    response = auth_client.put(f'/api/campaigns/{campaign.id}', json={"status": "paused", "performance": 42, "unknown": "x"})
    assert response.status_code == 200
    data = response.get_json()["campaign"]
    assert data["status"] == "paused"
    assert data["performance"] == 42
    assert data["name"] == "Summer Launch"
    assert data["platforms"] == ["google"]

def test_update_campaign_rejects_invalid_value(auth_client, user, create_campaign):
    campaign = create_campaign(user)
    response = auth_client.put(f'/api/campaigns/{campaign.id}', json={"status": "archived"})
    assert response.status_code == 400
    assert "status" in response.get_json()["errors"]

def test_delete_campaign_cascades(auth_client, user, create_campaign, db):
    campaign = create_campaign(user)
    db.session.add(Ad(campaign_id=campaign.id, user_id=user.id, type='text', content={"headline": "Hi"}))
    db.session.add(Analytics(campaign_id=campaign.id, impressions=10))
    db.session.add(PlatformCampaign(campaign_id=campaign.id, platform=PlatformNameEnum.GOOGLE,
                                    platform_campaign_id='gads-1', status='active'))
    db.session.commit()
    campaign_id = campaign.id

    response = auth_client.delete(f'/api/campaigns/{campaign_id}')
    assert response.status_code == 200
    assert response.get_json() == {"success": True}
    assert db.session.get(Campaign, campaign_id) is None
    assert Ad.query.count() == 0
    assert Analytics.query.count() == 0
    assert PlatformCampaign.query.count() == 0

# --- Ads ---

def test_create_and_list_ads(auth_client, user, create_campaign):
    campaign = create_campaign(user)
    content = {"headline": "Fresh Coffee", "url": "www.coffee.example", "body": "Wake up happy."}

    response = auth_client.post('/api/ads', json={"campaign_id": campaign.id, "type": "text", "content": content})
    assert response.status_code == 201
    ad = response.get_json()["ad"]
    assert ad["content"] == content
    assert ad["user_id"] == user.id

    assert [a["id"] for a in auth_client.get('/api/ads').get_json()["ads"]] == [ad["id"]]
    assert [a["id"] for a in auth_client.get(f'/api/campaigns/{campaign.id}/ads').get_json()["ads"]] == [ad["id"]]

@pytest.mark.parametrize("payload, field", [
    ({"campaign_id": "1", "type": "text", "content": {}}, "campaign_id"),
    ({"campaign_id": 1, "type": "multi-format", "content": {}}, "type"),
    ({"campaign_id": 1, "type": "audio", "content": "script"}, "content"),
])
def test_create_ad_invalid(auth_client, payload, field):
    response = auth_client.post('/api/ads', json=payload)
    assert response.status_code == 400
    assert field in response.get_json()["errors"]

def test_create_ad_for_foreign_campaign(auth_client, create_user, create_campaign):
    foreign = create_campaign(create_user(username="other"))
    response = auth_client.post('/api/ads', json={"campaign_id": foreign.id, "type": "audio", "content": {"script": "Hi"}})
    assert response.status_code == 403
    assert response.get_json()["message"] == "Invalid campaign"

# --- Analytics ---

def test_record_and_list_analytics(auth_client, user, create_campaign):
    campaign = create_campaign(user)

    response = auth_client.post(f'/api/campaigns/{campaign.id}/analytics',
                                json={"impressions": 1200, "clicks": 30, "date": "2024-04-01"})
    assert response.status_code == 201
    row = response.get_json()["analytics"]
    assert row["impressions"] == 1200
    assert row["clicks"] == 30
    assert row["conversions"] == 0
    assert row["date"] == datetime(2024, 4, 1).isoformat()

    rows = auth_client.get(f'/api/campaigns/{campaign.id}/analytics').get_json()["analytics"]
    assert len(rows) == 1

@pytest.mark.parametrize("payload, field", [
    ({"impressions": -1}, "impressions"),
    ({"clicks": "ten"}, "clicks"),
    ({"date": "yesterday"}, "date"),
])
def test_record_analytics_invalid(auth_client, user, create_campaign, payload, field):
    campaign = create_campaign(user)
    response = auth_client.post(f'/api/campaigns/{campaign.id}/analytics', json=payload)
    assert response.status_code == 400
    assert field in response.get_json()["errors"]

def test_campaign_platforms(auth_client, user, create_campaign, db):
    campaign = create_campaign(user)
    for platform, external_id in [(PlatformNameEnum.GOOGLE, 'gads-1'), (PlatformNameEnum.FACEBOOK, 'fbads-2'),
                                  (PlatformNameEnum.GOOGLE, 'gads-3')]:
        db.session.add(PlatformCampaign(campaign_id=campaign.id, platform=platform,
                                        platform_campaign_id=external_id, status='active'))
        db.session.commit()

    data = auth_client.get(f'/api/campaigns/{campaign.id}/platforms').get_json()
    assert data["platforms"] == ["google", "facebook"]
    assert [pc["platform_campaign_id"] for pc in data["platform_campaigns"]] == ['gads-1', 'fbads-2', 'gads-3']
