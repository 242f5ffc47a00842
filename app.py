"""
app.py
Streamlit Member Portal (register, login, profile, member administration).
Run: streamlit run app.py
"""

from __future__ import annotations

from datetime import date

import streamlit as st

import api
import auth
import config
import db
import utils
from members import DeleteConfirmation, MemberStore
from models import Gender, LoginFormData, MemberFormData, RegisterFormData

st.set_page_config(page_title="Member Portal", layout="wide")

PAGE_FOR_ROUTE = {
    "login": "Login",
    "register": "Register",
    "dashboard": "Dashboard",
    "profile": "Profil",
}
MEMBER_PAGES = ["Dashboard", "Tambah Member", "Profil"]


# ---------- Navigation ----------

def navigate(route: str) -> None:
    st.session_state.page = PAGE_FOR_ROUTE.get(route, "Login")


def on_unauthorized(route: str) -> None:
    # The stored token is already gone; rebuild the session from storage on the next run.
    st.session_state.rehydrate = True
    navigate(route)


def init_once():
    config.configure_logging()
    db.init_db()

    if "session" not in st.session_state:
        client = api.ApiClient(navigate=on_unauthorized)
        session = auth.AuthSession(client, navigate=navigate)
        session.initialize()
        store = MemberStore(client, session)
        st.session_state.api = client
        st.session_state.session = session
        st.session_state.store = store
        st.session_state.confirm = DeleteConfirmation(store)
        st.session_state.members_loaded = False
        st.session_state.page = "Dashboard" if session.is_authenticated else "Login"
    elif st.session_state.pop("rehydrate", False) and st.session_state.session.is_authenticated:
        st.session_state.session.initialize()
        st.session_state.members_loaded = False


# ---------- Form helpers ----------

def get_tracker(key: str, factory) -> utils.FormTracker:
    if key not in st.session_state:
        st.session_state[key] = factory()
    return st.session_state[key]


def reset_form(form_key: str) -> None:
    """Drop the tracker and its widget values so the form renders empty next run."""
    for key in [k for k in st.session_state.keys() if str(k).startswith(f"{form_key}_")]:
        del st.session_state[key]


def _commit_field(tracker: utils.FormTracker, name: str, widget_key: str) -> None:
    # text widgets report changes when they lose focus, which counts as a blur
    value = st.session_state[widget_key]
    if isinstance(value, date):
        value = value.isoformat()
    tracker.change(name, value or "")
    tracker.blur(name)


def field_error(tracker: utils.FormTracker, name: str) -> None:
    err = tracker.errors.get(name)
    if err:
        st.caption(f":red[{err}]")


def text_field(tracker: utils.FormTracker, form_key: str, name: str, label: str, **kwargs) -> None:
    widget_key = f"{form_key}_{name}"
    widget = st.text_area if kwargs.pop("area", False) else st.text_input
    widget(
        label,
        value=getattr(tracker.data, name),
        key=widget_key,
        on_change=_commit_field,
        args=(tracker, name, widget_key),
        **kwargs,
    )
    field_error(tracker, name)


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value[:10]) if value else None
    except ValueError:
        return None


def profile_fields(tracker: utils.FormTracker, form_key: str) -> None:
    text_field(tracker, form_key, "phone_number", "Nomor HP", placeholder="08xxxxxxxxxx")

    gender_key = f"{form_key}_gender"
    options = [g.value for g in Gender]
    current = tracker.data.gender
    st.radio(
        "Gender",
        options=options,
        index=options.index(current) if current in options else None,
        format_func=lambda v: utils.gender_label(Gender(v)),
        key=gender_key,
        horizontal=True,
        on_change=_commit_field,
        args=(tracker, "gender", gender_key),
    )
    field_error(tracker, "gender")

    birth_key = f"{form_key}_birth_date"
    st.date_input(
        "Tanggal lahir",
        value=_parse_date(tracker.data.birth_date),
        min_value=date(1900, 1, 1),
        max_value=date.today(),
        key=birth_key,
        on_change=_commit_field,
        args=(tracker, "birth_date", birth_key),
    )
    field_error(tracker, "birth_date")

    text_field(tracker, form_key, "address", "Alamat", area=True)


# ---------- Auth screens ----------

def login_screen():
    session: auth.AuthSession = st.session_state.session
    tracker = get_tracker("login_form", lambda: utils.FormTracker(LoginFormData(), utils.validate_login_form))

    st.title("🔐 Login")

    if session.state.error:
        st.error(session.state.error)
        if st.button("Tutup"):
            session.clear_error()
            st.rerun()

    text_field(tracker, "login", "email", "Email")
    text_field(tracker, "login", "password", "Password", type="password")

    if st.button("Login", type="primary", disabled=session.state.loading):
        tracker.submit()
        if tracker.is_valid and session.login(tracker.data):
            reset_form("login")
            st.session_state.members_loaded = False
            navigate("dashboard")
        st.rerun()

    st.caption("Belum punya akun?")
    if st.button("Daftar"):
        session.clear_error()
        navigate("register")
        st.rerun()


def register_screen():
    session: auth.AuthSession = st.session_state.session
    tracker = get_tracker(
        "register_form", lambda: utils.FormTracker(RegisterFormData(), utils.validate_register_form)
    )

    st.title("📝 Registrasi")

    if session.state.error:
        st.error(session.state.error)
        if st.button("Tutup"):
            session.clear_error()
            st.rerun()

    col1, col2 = st.columns(2)
    with col1:
        text_field(tracker, "register", "full_name", "Nama lengkap")
        text_field(tracker, "register", "email", "Email")
        text_field(tracker, "register", "password", "Password", type="password")
        text_field(tracker, "register", "confirm_password", "Konfirmasi password", type="password")
    with col2:
        profile_fields(tracker, "register")

    if st.button("Daftar", type="primary", disabled=session.state.loading):
        tracker.submit()
        if tracker.is_valid and session.register(tracker.data):
            reset_form("register")
            st.session_state.members_loaded = False
            navigate("dashboard")
        st.rerun()

    st.caption("Sudah punya akun?")
    if st.button("Login"):
        session.clear_error()
        navigate("login")
        st.rerun()


# ---------- Member pages ----------

def delete_dialog(confirm: DeleteConfirmation):
    st.warning(f"**{confirm.title}**\n\n{confirm.description}")
    c1, c2 = st.columns(2)
    with c1:
        if st.button("Batal"):
            confirm.cancel()
            st.rerun()
    with c2:
        if st.button(confirm.confirm_label, type="primary"):
            confirm.confirm()
            st.rerun()


def dashboard_page():
    st.header("📊 Dashboard")

    session: auth.AuthSession = st.session_state.session
    store: MemberStore = st.session_state.store
    confirm: DeleteConfirmation = st.session_state.confirm

    if not st.session_state.members_loaded:
        store.fetch_members()
        st.session_state.members_loaded = True

    with st.sidebar:
        st.subheader("Cari")
        search = st.text_input("Cari member...")
        if st.button("Muat ulang"):
            st.session_state.members_loaded = False
            st.rerun()

    if store.loading:
        st.info("Memuat data member...")
        return

    if store.load_error:
        st.error(store.load_error)
        return

    if store.error:
        st.error(store.error)
        if st.button("Tutup"):
            store.error = None
            st.rerun()

    members = store.visible_members
    if not members:
        st.caption("Belum ada member. Member baru akan muncul di sini setelah pendaftaran.")
        return

    if session.is_admin:
        st.caption("🛡️ Anda memiliki hak akses untuk mengelola member")
    else:
        st.caption("Lihat semua member terdaftar dalam sistem")

    rows = utils.filter_members(members, search)
    if rows:
        st.dataframe(utils.members_to_dataframe(rows), use_container_width=True, hide_index=True)
    else:
        st.caption("Tidak ada member yang ditemukan")
    st.caption(f"Total: {len(members)} member")

    if not session.is_admin:
        return

    st.divider()

    if confirm.is_open:
        delete_dialog(confirm)
        return

    colA, colB = st.columns([2, 1])
    with colA:
        labels = {f"{m.full_name} ({m.email})": m.id for m in rows}
        chosen = st.selectbox("Pilih member", options=["(none)"] + list(labels.keys()))
        if st.button("Hapus", disabled=chosen == "(none)"):
            confirm.request_delete(labels[chosen])
            st.rerun()
    with colB:
        if st.button("Hapus Semua"):
            confirm.request_delete_all()
            st.rerun()


def add_member_page():
    st.header("➕ Tambah Member")

    store: MemberStore = st.session_state.store
    tracker = get_tracker("member_form", lambda: utils.FormTracker(MemberFormData(), utils.validate_member_form))

    col1, col2 = st.columns(2)
    with col1:
        text_field(tracker, "member", "full_name", "Nama lengkap")
        text_field(tracker, "member", "email", "Email")
    with col2:
        profile_fields(tracker, "member")

    if st.button("Simpan", type="primary"):
        tracker.submit()
        if not tracker.is_valid:
            st.rerun()
        member = store.add_member(tracker.data)
        if member is None:
            st.error(store.error)
        else:
            reset_form("member")
            st.success(f"Member {member.full_name} berhasil didaftarkan.")


def _profile_tracker() -> utils.FormTracker:
    user = st.session_state.session.user
    data = MemberFormData(
        full_name=user.full_name,
        email=user.email,
        phone_number=user.phone_number,
        gender=user.gender.value,
        birth_date=user.birth_date,
        address=user.address,
    )
    return utils.FormTracker(data, utils.validate_member_form)


def profile_page():
    st.header("👤 Profil Saya")

    session: auth.AuthSession = st.session_state.session
    if session.user is None:
        st.info("Memuat data profil...")
        return

    tracker = get_tracker("profile_form", _profile_tracker)

    col1, col2 = st.columns(2)
    with col1:
        text_field(tracker, "profile", "full_name", "Nama lengkap")
        text_field(tracker, "profile", "email", "Email", disabled=True)
        st.caption(f"Terdaftar sejak {utils.format_date(session.user.registration_date)}")
    with col2:
        profile_fields(tracker, "profile")

    if st.button("Simpan perubahan", type="primary", disabled=session.state.loading):
        tracker.submit()
        if not tracker.is_valid:
            st.rerun()
        response = session.update_profile(tracker.data)
        if response.ok:
            reset_form("profile")
            st.success("Profil berhasil diperbarui!")
        else:
            st.error(response.message or "Gagal memperbarui profil. Silakan coba lagi.")


def main_app():
    session: auth.AuthSession = st.session_state.session

    st.sidebar.title("👥 Member Portal")
    st.sidebar.caption(f"Login sebagai: {session.user.email}")

    if st.session_state.page not in MEMBER_PAGES:
        st.session_state.page = "Dashboard"
    st.session_state.page = st.sidebar.radio(
        "Navigasi", MEMBER_PAGES, index=MEMBER_PAGES.index(st.session_state.page)
    )

    if st.sidebar.button("Logout"):
        session.logout()
        st.session_state.confirm.cancel()
        st.session_state.members_loaded = False
        st.rerun()

    if st.session_state.page == "Dashboard":
        dashboard_page()
    elif st.session_state.page == "Tambah Member":
        add_member_page()
    elif st.session_state.page == "Profil":
        profile_page()


# --------- App entry ---------

def run():
    init_once()

    if not st.session_state.session.is_authenticated:
        if st.session_state.page == "Register":
            register_screen()
        else:
            login_screen()
        return

    main_app()

    # a 401 during this run cleared the token
    if st.session_state.get("rehydrate"):
        st.rerun()


if __name__ == "__main__":
    run()
