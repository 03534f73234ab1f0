"""
Streamlit web app for workday tracking.
Login/sign-up screens, a day-marking form, a month calendar of marked
days and an earnings summary.
"""

import logging
from datetime import date
from typing import Any, Callable, Optional

import streamlit as st
from pydantic import ValidationError

# Import our modules
import auth
import calc
from config import Backend, Configured, app_url, configure_logging, currency_label, load_backend, require_client
from errors import AuthError, TrackerError
from forms import DailyRateForm, LoginForm, SignupForm, WorkdayForm, validation_messages
from workdays import ProfileState, WorkdayStore

logger = logging.getLogger(__name__)

WEEKDAY_ABBR = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
RATE_STEP = 50.0


def get_backend() -> Backend:
    # one client per browser session; it carries that user's auth session
    if "backend" not in st.session_state:
        st.session_state["backend"] = load_backend()
    return st.session_state["backend"]


def flash(level: str, text: str) -> None:
    """Queue a message that survives the next st.rerun()."""
    st.session_state.setdefault("flash", []).append((level, text))


def show_flash() -> None:
    for level, text in st.session_state.pop("flash", []):
        if level == "error":
            st.error(text)
        else:
            st.toast(text)


def run_action(action: Callable[[], Any], success: Optional[str] = None) -> bool:
    """Run a user action, turning TrackerError into a notification."""
    try:
        action()
    except AuthError as e:
        if e.silent:
            logger.info("Ignoring %s", e.kind.value)
        else:
            flash("error", f"{e.title}: {e.message}")
        return False
    except TrackerError as e:
        flash("error", f"{e.title}: {e.message}")
        return False
    if success:
        flash("success", success)
    return True


def start_session(session: auth.Session, client) -> None:
    st.session_state["session"] = session
    st.session_state["backend"] = Configured(client)
    st.session_state["profile"] = ProfileState()
    st.session_state.pop("oauth_url", None)


def handle_oauth_callback() -> None:
    """Finish a Google sign-in when the provider redirects back here."""
    params = st.query_params.to_dict()
    if not (params.get("code") or params.get("error")):
        return
    st.query_params.clear()

    def complete():
        result = auth.sign_in_with_federated_provider(params)
        if result is not None:
            start_session(*result)

    if run_action(complete, "Signed in"):
        st.rerun()


def render_login(backend: Backend):
    st.title("Sign in")
    st.markdown("Mark the days you worked and see what you earned this month and overall.")
    configured = isinstance(backend, Configured)
    if not configured:
        st.error(f"Backend not configured: {backend.reason}")

    with st.form("login"):
        email = st.text_input("Email", value="", autocomplete="username")
        password = st.text_input("Password", type="password", autocomplete="current-password")
        submitted = st.form_submit_button("Sign in", disabled=not configured)
    if submitted:
        try:
            form = LoginForm(email=email, password=password)
        except ValidationError as e:
            for message in validation_messages(e):
                st.error(message)
            return

        def sign_in():
            client = require_client(backend)
            start_session(auth.sign_in_with_password(client, form.email, form.password), client)

        if run_action(sign_in, "Signed in"):
            st.rerun()
        show_flash()

    st.caption("Or continue with")
    if st.button("Google", disabled=not configured, key="google"):
        def start_google():
            url = auth.start_federated_sign_in(require_client(backend), "google", app_url())
            st.session_state["oauth_url"] = url

        run_action(start_google)
        show_flash()
    if st.session_state.get("oauth_url"):
        st.link_button("Continue to Google ↗", st.session_state["oauth_url"])

    if st.button("No account? Sign up", key="to_signup"):
        st.session_state["auth_view"] = "signup"
        st.rerun()


def render_signup(backend: Backend):
    st.title("Create account")
    configured = isinstance(backend, Configured)
    if not configured:
        st.error(f"Backend not configured: {backend.reason}")

    with st.form("signup"):
        email = st.text_input("Email", value="", autocomplete="username")
        password = st.text_input("Password", type="password", autocomplete="new-password")
        confirm = st.text_input("Confirm password", type="password", autocomplete="new-password")
        submitted = st.form_submit_button("Sign up", disabled=not configured)
    if submitted:
        try:
            form = SignupForm(email=email, password=password, confirm_password=confirm)
        except ValidationError as e:
            for message in validation_messages(e):
                st.error(message)
            return

        def register():
            client = require_client(backend)
            session = auth.sign_up(client, form.email, form.password)
            if session is None:
                flash("success", "Check your inbox to confirm your email, then sign in.")
                st.session_state["auth_view"] = "login"
            else:
                start_session(session, client)

        if run_action(register):
            st.rerun()
        show_flash()

    if st.button("Already have an account? Sign in", key="to_login"):
        st.session_state["auth_view"] = "login"
        st.rerun()


# Page configuration
st.set_page_config(
    page_title="Workday Compass",
    page_icon="🧭",
    layout="wide",
    initial_sidebar_state="expanded"
)

configure_logging()

st.markdown("""
<style>
.weekday-label { font-size: 0.85rem; opacity: .75; text-align: center; font-weight: 600; }
.calendar-footer { font-size: 0.9rem; opacity: .75; margin-top: .5rem; }
</style>
""", unsafe_allow_html=True)

handle_oauth_callback()
show_flash()

# Gate the app UI behind login
if "session" not in st.session_state:
    if st.session_state.get("auth_view") == "signup":
        render_signup(get_backend())
    else:
        render_login(get_backend())
    st.stop()

# Initialize session state
if "selected_day" not in st.session_state:
    st.session_state["selected_day"] = date.today()
if "visible_month" not in st.session_state:
    st.session_state["visible_month"] = date.today().replace(day=1)


def entry_for(state: ProfileState, day_date: date) -> calc.WorkdayEntry:
    try:
        return calc.WorkdayEntry.from_raw(state.workdays.get(calc.day_key(day_date)))
    except (TypeError, ValueError):
        logger.warning("Unreadable workday value for %s", day_date)
        return calc.WorkdayEntry(worked=False)


def load_profile(store: WorkdayStore, user_id: str) -> None:
    """Load the user's document once per session."""
    if store.state.loaded:
        return
    if st.session_state.get("load_failed"):
        st.warning("Your data is not loaded yet.")
        if st.button("Retry loading"):
            st.session_state.pop("load_failed")
            st.rerun()
        return
    if not run_action(lambda: store.load_profile(user_id)):
        st.session_state["load_failed"] = True
        st.rerun()


def render_sidebar(session: auth.Session):
    with st.sidebar:
        st.markdown(f"### Hi, {session.display_name} 👋")
        if session.email:
            st.caption(f"Signed in as {session.email}")
        if st.button("Sign out"):
            auth.sign_out(require_client(get_backend()))
            st.session_state.clear()
            st.rerun()


def pick_day() -> None:
    st.session_state["selected_day"] = st.session_state["picked_day"]


def render_workday_form(store: WorkdayStore, user_id: str):
    """Date picker + optional per-day rate; the rate and buttons follow the picked day."""
    state = store.state
    selected = st.session_state["selected_day"]
    entry = entry_for(state, selected)
    currency = currency_label()

    st.subheader("Mark a day")
    # calendar clicks move the picker too
    if st.session_state.get("picked_day") != selected:
        st.session_state["picked_day"] = selected
    st.date_input("Date", key="picked_day", on_change=pick_day)

    with st.form("workday"):
        rate_value = st.number_input(
            f"Rate for this day ({currency})",
            min_value=0.0,
            value=float(entry.rate) if entry.worked and entry.rate is not None else None,
            step=RATE_STEP,
            placeholder=f"Default: {calc.format_money(state.daily_rate, currency)}",
            key=f"rate_{calc.day_key(selected)}",
        )
        save = st.form_submit_button("Update" if entry.worked else "Mark as worked", type="primary", key="save_day")
        remove = st.form_submit_button("Remove mark", disabled=not entry.worked, key="remove_day")

    if save:
        try:
            form = WorkdayForm(day=selected, rate=rate_value)
        except ValidationError as e:
            for message in validation_messages(e):
                st.error(message)
            return
        rate_text = calc.format_money(form.to_entry().effective_rate(state.daily_rate), currency)
        run_action(
            lambda: store.mark_day(user_id, form.day, form.to_entry()),
            f"Marked {form.day:%B %d, %Y}. Rate: {rate_text}.",
        )
        st.rerun()

    if remove and entry.worked:
        run_action(
            lambda: store.unmark_day(user_id, selected),
            f"Removed the mark for {selected:%B %d, %Y}.",
        )
        st.rerun()


def render_summary(store: WorkdayStore, user_id: str):
    """Days and earnings for the visible month and all time, plus the default rate."""
    state = store.state
    reference = st.session_state["visible_month"]
    currency = currency_label()

    st.subheader(f"Summary for {calc.get_month_name(reference.month)} {reference.year}")
    col1, col2 = st.columns(2)
    col1.metric("Days this month", calc.monthly_days(state.workdays, reference))
    col2.metric("Earned this month", calc.format_money(
        calc.monthly_earnings(state.workdays, reference, state.daily_rate), currency))
    col1.metric("Days all time", calc.total_days(state.workdays))
    col2.metric("Earned all time", calc.format_money(
        calc.total_earnings(state.workdays, state.daily_rate), currency))

    with st.form("daily_rate"):
        new_rate = st.number_input(
            f"Your daily rate ({currency})",
            min_value=0.0,
            value=float(state.daily_rate),
            step=RATE_STEP,
            key="daily_rate_input",
        )
        saved = st.form_submit_button("Save rate", key="save_rate")

    if saved and new_rate != state.daily_rate:
        try:
            form = DailyRateForm(rate=new_rate)
        except ValidationError as e:
            for message in validation_messages(e):
                st.error(message)
            return
        run_action(lambda: store.set_daily_rate(user_id, form.rate), "Daily rate updated.")
        st.rerun()


def render_calendar(state: ProfileState):
    """Render the month grid; marked days are highlighted and clicking selects a day."""
    visible = st.session_state["visible_month"]
    selected = st.session_state["selected_day"]
    marked = calc.marked_days(state.workdays)

    # Calendar header
    col1, col2, col3 = st.columns([1, 3, 1])
    with col1:
        if st.button("◀", key="prev_month"):
            st.session_state["visible_month"] = calc.add_months(visible, -1)
            st.rerun()
    with col2:
        month_name = calc.get_month_name(visible.month)
        st.markdown(f"<h2 style='text-align: center'>{month_name} {visible.year}</h2>",
                    unsafe_allow_html=True)
    with col3:
        if st.button("▶", key="next_month"):
            st.session_state["visible_month"] = calc.add_months(visible, 1)
            st.rerun()

    cols = st.columns(7)
    for i, weekday in enumerate(WEEKDAY_ABBR):
        with cols[i]:
            st.markdown(f'<div class="weekday-label">{weekday}</div>', unsafe_allow_html=True)

    for week in calc.month_grid(visible.year, visible.month):
        cols = st.columns(7)
        for i, day_date in enumerate(week):
            with cols[i]:
                if day_date is None:
                    st.markdown("<div style='height: 2.5rem;'></div>", unsafe_allow_html=True)
                    continue
                label = f"{day_date.day} ✅" if day_date in marked else str(day_date.day)
                if st.button(
                    label,
                    key=f"day_{day_date.isoformat()}",
                    type="primary" if day_date == selected else "secondary",
                    use_container_width=True,
                ):
                    st.session_state["selected_day"] = day_date
                    st.rerun()

    st.markdown(f'<div class="calendar-footer">Selected: {selected:%B %d, %Y}.</div>',
                unsafe_allow_html=True)


def main():
    """Main application function."""
    session: auth.Session = st.session_state["session"]
    client = require_client(get_backend())
    state = st.session_state.setdefault("profile", ProfileState())
    store = WorkdayStore(client, state)

    st.title("🧭 Workday Compass")
    render_sidebar(session)
    load_profile(store, session.user_id)

    left, right = st.columns([2, 3], gap="large")
    with left:
        render_workday_form(store, session.user_id)
        st.markdown("---")
        render_summary(store, session.user_id)
    with right:
        render_calendar(state)


if __name__ == "__main__":
    main()
