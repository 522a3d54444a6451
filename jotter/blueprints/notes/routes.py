from flask import render_template, jsonify
from flask_login import current_user, login_required

from jotter.blueprints.notes import notes_bp
from jotter.extensions import csrf
from jotter.services.note_service import NoteService
from jotter.utils.request_body import get_body


# ============== 页面 ==============

@notes_bp.route('/notes')
@login_required
def index():
    """我的记事 (管理员可看到全部)"""
    return render_template('notes/index.html', notes=NoteService.list_notes(current_user))


@notes_bp.route('/notes/new')
@login_required
def new_note():
    return render_template('notes/form.html', note=None, page_title='新建记事')


@notes_bp.route('/notes/<note_id>/edit')
@login_required
def edit_note(note_id):
    note = NoteService.get_note(current_user, note_id)
    return render_template('notes/form.html', note=note, page_title='编辑记事')


# ============== API ==============

@notes_bp.route('/api/notes', methods=['GET'])
@login_required
def api_list():
    return jsonify(NoteService.list_notes(current_user))


@notes_bp.route('/api/notes', methods=['POST'])
@csrf.exempt
@login_required
def api_create():
    note = NoteService.create_note(current_user, get_body())
    return jsonify(note), 201


@notes_bp.route('/api/notes/<note_id>', methods=['GET'])
@login_required
def api_get(note_id):
    return jsonify(NoteService.get_note(current_user, note_id))


@notes_bp.route('/api/notes/<note_id>', methods=['PUT'])
@csrf.exempt
@login_required
def api_update(note_id):
    return jsonify(NoteService.update_note(current_user, note_id, get_body()))


@notes_bp.route('/api/notes/<note_id>', methods=['DELETE'])
@csrf.exempt
@login_required
def api_delete(note_id):
    NoteService.delete_note(current_user, note_id)
    return jsonify({'message': f'记事 (ID: {note_id}) 已成功删除。'})
