"""Organization administration tests."""

import pytest
from koopflow.errors import (
    Forbidden,
    LastAdminProtected,
    NotFound,
    SelfActionDenied,
    ValidationError,
)
from koopflow.models.koopovereenkomst import Koopovereenkomst
from koopflow.models.user import User
from koopflow.organization import directory
from tests.conftest import login


def _admin_action(client, **body):
    return client.post('/admin/users', json=body)


class TestUserManagement:

    def test_list_users_includes_pending(self, admin_client1, admin1, user1, pending_user, user2):
        response = admin_client1.get('/admin/users')

        assert response.status_code == 200
        emails = {u['email'] for u in response.get_json()['users']}
        assert emails == {admin1.email, user1.email, pending_user.email}

    def test_member_cannot_list_users(self, authenticated_client1):
        response = authenticated_client1.get('/admin/users')
        assert response.status_code == 403

    def test_approve_pending_user(self, admin_client1, pending_user, org1, db):
        response = _admin_action(admin_client1, action='approve', userId=pending_user.id)

        assert response.status_code == 200
        db.session.expire_all()
        user = db.session.get(User, pending_user.id)
        assert user.organization_id == org1.id
        assert user.pending_organization_id is None
        assert user.registration_status == 'APPROVED'

    def test_approved_user_can_log_in(self, app, admin_client1, pending_user):
        _admin_action(admin_client1, action='approve', userId=pending_user.id)

        response = app.test_client().post('/auth/login', json={
            'email': pending_user.email,
            'password': 'password123'
        })
        assert response.status_code == 200

    def test_reject_pending_user(self, admin_client1, pending_user, db):
        response = _admin_action(admin_client1, action='reject', userId=pending_user.id)

        assert response.status_code == 200
        db.session.expire_all()
        user = db.session.get(User, pending_user.id)
        assert user.pending_organization_id is None
        assert user.organization_id is None
        assert user.registration_status == 'REJECTED'

    def test_approve_member_without_pending_request(self, admin_client1, user1):
        response = _admin_action(admin_client1, action='approve', userId=user1.id)
        assert response.status_code == 400

    def test_promote_member(self, admin_client1, user1, db):
        response = _admin_action(admin_client1, action='toggleAdmin', userId=user1.id, isAdmin=True)

        assert response.status_code == 200
        assert response.get_json()['user']['isAdmin'] is True

    def test_delete_member(self, admin_client1, user1, db):
        user_id = user1.id

        response = _admin_action(admin_client1, action='delete', userId=user_id)

        assert response.status_code == 200
        db.session.expire_all()
        assert db.session.get(User, user_id) is None

    def test_invalid_action(self, admin_client1, user1):
        response = _admin_action(admin_client1, action='promote', userId=user1.id)
        assert response.status_code == 400

    def test_missing_parameters(self, admin_client1):
        response = _admin_action(admin_client1, action='delete')
        assert response.status_code == 400

    def test_unknown_user(self, admin_client1):
        response = _admin_action(admin_client1, action='delete', userId=424242)
        assert response.status_code == 404


class TestCrossTenantAdmin:

    def test_cannot_manage_user_of_other_org(self, admin_client1, user2, db):
        for body in (
            {'action': 'toggleAdmin', 'userId': user2.id, 'isAdmin': False},
            {'action': 'delete', 'userId': user2.id},
            {'action': 'approve', 'userId': user2.id},
        ):
            response = _admin_action(admin_client1, **body)
            assert response.status_code == 403
            assert response.get_json()['kind'] == 'Forbidden'

        db.session.expire_all()
        user = db.session.get(User, user2.id)
        assert user is not None
        assert user.is_admin is True

    def test_cannot_approve_user_pending_elsewhere(self, authenticated_client2, pending_user):
        response = _admin_action(authenticated_client2, action='approve', userId=pending_user.id)
        assert response.status_code == 403


class TestLastAdminInvariant:

    def test_sole_admin_cannot_be_demoted(self, admin1, db):
        with pytest.raises(LastAdminProtected):
            directory.toggle_admin(admin1, admin1.id, False)

        db.session.expire_all()
        assert db.session.get(User, admin1.id).is_admin is True

    def test_sole_admin_cannot_be_deleted(self, admin1, db):
        with pytest.raises(LastAdminProtected):
            directory.delete_user(admin1, admin1.id)

        db.session.expire_all()
        assert db.session.get(User, admin1.id) is not None

    def test_second_admin_unlocks_demote_and_delete(self, admin1, user1, colleague1, db):
        directory.toggle_admin(admin1, user1.id, True)

        # user1 is now an admin too and may act on the first admin
        directory.toggle_admin(user1, admin1.id, False)
        assert db.session.get(User, admin1.id).is_admin is False

        user1_id = user1.id
        directory.toggle_admin(user1, colleague1.id, True)
        directory.delete_user(colleague1, user1_id)
        assert db.session.get(User, user1_id) is None

    def test_http_status_for_last_admin(self, admin_client1, admin1):
        response = _admin_action(admin_client1, action='delete', userId=admin1.id)

        assert response.status_code == 409
        assert response.get_json()['kind'] == 'LastAdminProtected'


class TestSelfAction:

    def test_admin_cannot_demote_self_even_with_other_admins(self, admin1, user1, db):
        directory.toggle_admin(admin1, user1.id, True)

        with pytest.raises(SelfActionDenied):
            directory.toggle_admin(admin1, admin1.id, False)

        assert db.session.get(User, admin1.id).is_admin is True

    def test_admin_cannot_delete_self_even_with_other_admins(self, admin1, user1, db):
        directory.toggle_admin(admin1, user1.id, True)

        with pytest.raises(SelfActionDenied):
            directory.delete_user(admin1, admin1.id)

        assert db.session.get(User, admin1.id) is not None

    def test_http_status_for_self_action(self, admin_client1, admin1, user1):
        _admin_action(admin_client1, action='toggleAdmin', userId=user1.id, isAdmin=True)

        response = _admin_action(admin_client1, action='delete', userId=admin1.id)

        assert response.status_code == 400
        assert response.get_json()['kind'] == 'SelfActionDenied'


class TestDeleteKeepsDocuments:

    def test_member_documents_survive_deletion(self, admin1, user1, colleague1, koopovereenkomst1, db):
        record_id = koopovereenkomst1.id
        user1_id = user1.id

        directory.delete_user(admin1, user1_id)

        db.session.expire_all()
        assert db.session.get(User, user1_id) is None
        record = db.session.get(Koopovereenkomst, record_id)
        assert record is not None
        assert record.user_id == admin1.id
        assert record.organization_id == admin1.organization_id

    def test_documents_stay_visible_to_organization(
        self, app, admin_client1, user1, colleague1, koopovereenkomst1
    ):
        record_id = koopovereenkomst1.id

        response = _admin_action(admin_client1, action='delete', userId=user1.id)
        assert response.status_code == 200

        response = login(app, colleague1.email).get('/koopovereenkomsten')
        assert [item['id'] for item in response.get_json()['koopovereenkomsten']] == [record_id]


class TestGuards:

    def test_non_admin_cannot_act(self, user1, colleague1):
        with pytest.raises(Forbidden):
            directory.delete_user(user1, colleague1.id)

    def test_missing_target(self, admin1):
        with pytest.raises(NotFound):
            directory.approve_user(admin1, 999999)

    def test_pending_user_cannot_be_made_admin(self, admin1, pending_user):
        with pytest.raises(ValidationError):
            directory.toggle_admin(admin1, pending_user.id, True)

    def test_is_admin_must_be_boolean(self, admin1, user1):
        with pytest.raises(ValidationError):
            directory.toggle_admin(admin1, user1.id, 'yes')

    def test_resolve_principal(self, admin1, user1):
        assert directory.resolve_principal(admin1) == {
            'organizationId': admin1.organization_id,
            'isAdmin': True,
            'role': 'admin',
        }
        assert directory.resolve_principal(user1)['role'] == 'member'


class TestOrganizationSettings:

    def test_get_settings(self, admin_client1, org1):
        response = admin_client1.get('/admin/organization-settings')

        assert response.status_code == 200
        data = response.get_json()
        assert data['domain'] == 'noord'
        assert data['documentWorkflowEnabled'] is True
        assert data['billingComplete'] is True

    def test_member_cannot_read_settings(self, authenticated_client1):
        response = authenticated_client1.get('/admin/organization-settings')
        assert response.status_code == 403

    def test_enable_with_incomplete_billing_rejected(self, admin_client1, org1, db):
        org1.has_document_workflow = False
        db.session.commit()

        response = admin_client1.post('/admin/organization-settings', json={
            'billingEmail': '',
            'billingCity': 'Groningen',
            'documentWorkflowEnabled': True,
        })

        assert response.status_code == 400
        assert 'billingEmail' in response.get_json()['error']
        db.session.expire_all()
        assert org1.has_document_workflow is False
        assert org1.billing_city == 'Utrecht'

    def test_enable_with_complete_billing(self, admin_client1, org1, db):
        org1.has_document_workflow = False
        db.session.commit()

        response = admin_client1.post('/admin/organization-settings', json={
            'billingVatNumber': 'NL001234567B01',
            'documentWorkflowEnabled': True,
        })

        assert response.status_code == 200
        data = response.get_json()
        assert data['documentWorkflowEnabled'] is True
        assert data['billingVatNumber'] == 'NL001234567B01'

    def test_vat_number_is_optional(self, org1, db):
        org1.billing_vat_number = None
        db.session.commit()

        assert org1.billing_complete is True

    def test_disable_feature(self, admin_client1, org1):
        response = admin_client1.post('/admin/organization-settings', json={
            'documentWorkflowEnabled': False,
        })

        assert response.status_code == 200
        assert response.get_json()['documentWorkflowEnabled'] is False


class TestOrganizationSummary:

    def test_member_sees_access(self, authenticated_client1, org1):
        response = authenticated_client1.get('/organization')

        assert response.status_code == 200
        data = response.get_json()
        assert data['domain'] == 'noord'
        assert data['hasDocumentWorkflowAccess'] is True
        assert data['principal']['role'] == 'member'

    def test_incomplete_billing_reports_no_access(self, authenticated_client1, org1, db):
        org1.billing_postal_code = '  '
        db.session.commit()

        response = authenticated_client1.get('/organization')

        assert response.get_json()['hasDocumentWorkflowAccess'] is False
