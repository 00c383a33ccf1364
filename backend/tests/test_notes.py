"""
Note upload, branch fan-out, moderation and deletion
"""
import json
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from notenexus.core.config import settings
from notenexus.models import Feedback, Note, NoteBranch

from helpers import upload


API = '/api/v1/notes'


def note_form(subject_id: str, **overrides) -> dict:
    form = {
        'title': 'Binary Trees - Unit 2',
        'semester': '3',
        'subjectId': subject_id,
        'branches': json.dumps(['IT', 'CSE']),
    }
    form.update(overrides)
    return {k: v for k, v in form.items() if v is not None}


class TestNoteUpload:

    @pytest.mark.asyncio
    async def test_upload_creates_one_pending_note_with_all_branches(
        self, client: AsyncClient, test_user, subject, auth_headers, storage, session_factory
    ):
        response = await client.post(
            f'{API}/note/upload', data=note_form(subject.id), files=upload(), headers=auth_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data['title'] == 'Binary Trees - Unit 2'
        assert data['branches'] == ['CSE', 'IT']
        assert data['approvedById'] is None
        assert data['subject']['name'] == 'Data Structures'
        assert data['uploadedBy']['id'] == test_user.id
        assert data['fileUrl'].startswith('/uploads/')

        stored = storage.upload_dir / data['fileUrl'].rsplit('/', 1)[1]
        assert stored.read_bytes() == b'%PDF-1.4 lecture notes'

        async with session_factory() as session:
            assert (await session.execute(select(func.count()).select_from(Note))).scalar() == 1
            assert (await session.execute(select(func.count()).select_from(NoteBranch))).scalar() == 2

    @pytest.mark.asyncio
    async def test_comma_separated_branches(self, client: AsyncClient, subject, auth_headers):
        response = await client.post(
            f'{API}/note/upload',
            data=note_form(subject.id, branches='ECE, CSE, ECE'),
            files=upload(),
            headers=auth_headers
        )

        assert response.status_code == 201
        assert response.json()['branches'] == ['CSE', 'ECE']

    @pytest.mark.asyncio
    async def test_single_branch_field(self, client: AsyncClient, subject, auth_headers):
        response = await client.post(
            f'{API}/note/upload',
            data=note_form(subject.id, branches=None, branch='MECH'),
            files=upload(),
            headers=auth_headers
        )

        assert response.status_code == 201
        assert response.json()['branches'] == ['MECH']

    @pytest.mark.asyncio
    async def test_branches_required(self, client: AsyncClient, subject, auth_headers):
        response = await client.post(
            f'{API}/note/upload', data=note_form(subject.id, branches='[]'), files=upload(), headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()['error']['details'] == {'field': 'branches'}

    @pytest.mark.asyncio
    async def test_unknown_subject(self, client: AsyncClient, auth_headers):
        response = await client.post(
            f'{API}/note/upload', data=note_form('no-such-subject'), files=upload(), headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()['error']['code'] == 'SUBJECT_NOT_FOUND'

    @pytest.mark.asyncio
    async def test_disallowed_file_type(self, client: AsyncClient, subject, auth_headers, storage):
        response = await client.post(
            f'{API}/note/upload',
            data=note_form(subject.id),
            files=upload('virus.exe', b'MZ...', 'application/octet-stream'),
            headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()['error']['code'] == 'VALIDATION_ERROR'
        assert list(storage.upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_oversized_file(self, client: AsyncClient, subject, auth_headers, monkeypatch):
        monkeypatch.setattr(settings, 'MAX_UPLOAD_SIZE', 10)

        response = await client.post(
            f'{API}/note/upload', data=note_form(subject.id), files=upload(), headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()['error']['details']['max_size'] == 10

    @pytest.mark.asyncio
    async def test_semester_out_of_range(self, client: AsyncClient, subject, auth_headers):
        response = await client.post(
            f'{API}/note/upload', data=note_form(subject.id, semester='9'), files=upload(), headers=auth_headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_upload_requires_login(self, client: AsyncClient, subject):
        response = await client.post(f'{API}/note/upload', data=note_form(subject.id), files=upload())

        assert response.status_code == 401


class TestNoteListing:

    @pytest.mark.asyncio
    async def test_only_approved_notes_listed_once(
        self, client: AsyncClient, test_user, admin_user, subject, make_note
    ):
        approved = await make_note(test_user, subject, branches=['CSE', 'IT'], approved_by=admin_user)
        await make_note(test_user, subject)

        response = await client.get(f'{API}/note/all')

        notes = response.json()['notes']
        assert [n['id'] for n in notes] == [approved.id]
        assert notes[0]['branches'] == ['CSE', 'IT']

    @pytest.mark.asyncio
    async def test_filter_by_branch(self, client: AsyncClient, test_user, admin_user, subject, make_note):
        shared = await make_note(test_user, subject, branches=['CSE', 'IT'], approved_by=admin_user)
        await make_note(test_user, subject, branches=['ECE'], approved_by=admin_user)

        response = await client.get(f'{API}/note/filter', params={'branch': 'IT'})

        notes = response.json()['notes']
        assert [n['id'] for n in notes] == [shared.id]
        assert notes[0]['branch'] == 'IT'

    @pytest.mark.asyncio
    async def test_filter_combines_conditions(self, client: AsyncClient, test_user, admin_user, subject, make_note):
        match = await make_note(test_user, subject, branches=['CSE'], semester=3, approved_by=admin_user)
        await make_note(test_user, subject, branches=['CSE'], semester=5, approved_by=admin_user)
        await make_note(test_user, subject, branches=['CSE'], semester=3)

        response = await client.get(
            f'{API}/note/filter', params={'branch': 'CSE', 'semester': 3, 'subjectId': subject.id}
        )

        assert [n['id'] for n in response.json()['notes']] == [match.id]

    @pytest.mark.asyncio
    async def test_filter_without_matches(self, client: AsyncClient, test_user, admin_user, subject, make_note):
        await make_note(test_user, subject, branches=['CSE'], approved_by=admin_user)

        response = await client.get(f'{API}/note/filter', params={'branch': 'CIVIL'})

        assert response.json() == {'notes': []}

    @pytest.mark.asyncio
    async def test_note_detail_includes_feedback(
        self, client: AsyncClient, db_session, test_user, other_user, admin_user, subject, make_note
    ):
        note = await make_note(test_user, subject, approved_by=admin_user)
        db_session.add(Feedback(content='Clear diagrams', user_id=other_user.id, note_id=note.id))
        await db_session.commit()

        response = await client.get(f'{API}/note/{note.id}')

        assert response.status_code == 200
        feedback = response.json()['feedback']
        assert [f['content'] for f in feedback] == ['Clear diagrams']
        assert feedback[0]['user']['name'] == other_user.name

    @pytest.mark.asyncio
    async def test_pending_note_hidden_from_others(
        self, client: AsyncClient, test_user, subject, make_note, auth_headers, other_auth_headers
    ):
        note = await make_note(test_user, subject)

        assert (await client.get(f'{API}/note/{note.id}', headers=other_auth_headers)).status_code == 404
        assert (await client.get(f'{API}/note/{note.id}', headers=auth_headers)).status_code == 200


class TestNoteModeration:

    @pytest.mark.asyncio
    async def test_pending_queue(self, client: AsyncClient, test_user, admin_user, subject, make_note, admin_auth_headers):
        pending = await make_note(test_user, subject)
        await make_note(test_user, subject, approved_by=admin_user)

        response = await client.get(f'{API}/note/pending', headers=admin_auth_headers)

        data = response.json()
        assert data['total'] == 1
        assert [n['id'] for n in data['notes']] == [pending.id]

    @pytest.mark.asyncio
    async def test_approve_note(self, client: AsyncClient, test_user, admin_user, subject, make_note, admin_auth_headers):
        note = await make_note(test_user, subject, branches=['CSE', 'IT'])

        response = await client.put(f'{API}/note/approve/{note.id}', headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()['approvedById'] == admin_user.id
        assert response.json()['approvedAt'] is not None
        assert len((await client.get(f'{API}/note/all')).json()['notes']) == 1

    @pytest.mark.asyncio
    async def test_revoke_approval(self, client: AsyncClient, test_user, admin_user, subject, make_note, admin_auth_headers):
        note = await make_note(test_user, subject, approved_by=admin_user)

        response = await client.put(
            f'{API}/note/approve/{note.id}', json={'approved': False}, headers=admin_auth_headers
        )

        assert response.status_code == 200
        assert response.json()['approvedById'] is None
        assert (await client.get(f'{API}/note/all')).json()['notes'] == []

    @pytest.mark.asyncio
    async def test_bulk_approve(self, client: AsyncClient, test_user, admin_user, subject, make_note, admin_auth_headers):
        first = await make_note(test_user, subject)
        second = await make_note(test_user, subject)
        already = await make_note(test_user, subject, approved_by=admin_user)

        response = await client.put(
            f'{API}/note/approve',
            json={'noteIds': [first.id, second.id, first.id, already.id, 'missing']},
            headers=admin_auth_headers
        )

        assert response.json() == {'message': '2 note(s) approved', 'count': 2}
        assert len((await client.get(f'{API}/note/all')).json()['notes']) == 3

    @pytest.mark.asyncio
    async def test_bulk_revoke_targets_approved_notes(
        self, client: AsyncClient, test_user, admin_user, subject, make_note, admin_auth_headers
    ):
        approved = await make_note(test_user, subject, approved_by=admin_user)
        pending = await make_note(test_user, subject)

        response = await client.put(
            f'{API}/note/approve',
            json={'noteIds': [approved.id, pending.id], 'approved': False},
            headers=admin_auth_headers
        )

        assert response.json() == {'message': '1 note(s) unapproved', 'count': 1}


class TestNoteDeletion:

    @pytest.mark.asyncio
    async def test_owner_deletes_note_file_and_feedback(
        self, client: AsyncClient, test_user, other_user, subject, auth_headers, storage, session_factory
    ):
        created = await client.post(
            f'{API}/note/upload', data=note_form(subject.id), files=upload(), headers=auth_headers
        )
        note = created.json()
        async with session_factory() as session:
            session.add(Feedback(content='Thanks a lot', user_id=other_user.id, note_id=note['id']))
            await session.commit()

        response = await client.delete(f"{API}/note/{note['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert list(storage.upload_dir.iterdir()) == []
        async with session_factory() as session:
            for model in (Note, NoteBranch, Feedback):
                assert (await session.execute(select(func.count()).select_from(model))).scalar() == 0

    @pytest.mark.asyncio
    async def test_other_student_cannot_delete(
        self, client: AsyncClient, test_user, subject, make_note, other_auth_headers
    ):
        note = await make_note(test_user, subject)

        response = await client.delete(f'{API}/note/{note.id}', headers=other_auth_headers)

        assert response.status_code == 403
        assert response.json()['error']['code'] == 'NOT_AUTHORIZED'
