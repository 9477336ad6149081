#======================================================================================
#
# SERVER-RENDERED PAGES
#
#=======================================================================================
from functools import wraps

from flask import Blueprint, abort, redirect, render_template, url_for
from flask_login import current_user, login_required

from workflows.investments import active_packages
from workflows.visits import TIME_SLOTS, earliest_visit_date

pages_bp = Blueprint("pages", __name__)

FAQS = [
    ("What is Crowdfarming?",
     "Crowdfarming allows many investors to fund a farm project together and earn returns after "
     "harvest or livestock growth."),
    ("How secure are CES investments?",
     "CES investments are backed by agricultural insurance and managed by professional farm teams."),
    ("What happens if my goat dies?",
     "CES replaces it at no extra cost through insurance and our livestock replacement policy."),
    ("Can I invest in multiple goats or farm packages?",
     "Yes. There is no limit as long as stock is available."),
    ("How do I receive updates?",
     "Through our digital platform, messages, photos, and optional farm visits."),
    ("Can I withdraw early?",
     "Early withdrawal may attract up to a 30% deduction due to operational costs."),
    ("Can diaspora investors join?",
     "Yes. CES accepts international investors, whether you're in Ghana or abroad."),
    ("How do returns work?",
     "Returns are paid at the end of each farm cycle, after sale of crops or livestock. Expected "
     "returns are typically around 15% ROI, depending on the package and market conditions."),
]

TESTIMONIALS = [
    {"name": "Ama", "location": "Accra",
     "message": "CES helped me grow my savings with peace of mind. The updates are very reassuring."},
    {"name": "Francis", "location": "Kumasi",
     "message": "My goat investment was handled professionally from start to finish. Highly recommended."},
    {"name": "Olivia", "location": "UK",
     "message": "Finally a trusted agricultural platform I can invest in from abroad."},
    {"name": "Kofi", "location": "Tema",
     "message": "The insurance alone makes CES stand out. My returns were delivered as promised."},
]


def page_role_required(role):
    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if not current_user.has_role(role):
                abort(403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


# ----------------------
# Public pages
# ----------------------
@pages_bp.route("/")
def index():
    return render_template("index.html", packages=active_packages())


@pages_bp.route("/about")
def about():
    return render_template("about.html")


@pages_bp.route("/faq")
def faq():
    return render_template("faq.html", faqs=FAQS)


@pages_bp.route("/terms")
def terms():
    return render_template("terms.html")


@pages_bp.route("/testimonials")
def testimonials():
    return render_template("testimonials.html", testimonials=TESTIMONIALS)


@pages_bp.route("/contact")
def contact():
    return render_template("contact.html")


@pages_bp.route("/login")
@pages_bp.route("/register")
def login():
    if current_user.is_authenticated:
        return redirect(url_for("pages.dashboard"))
    return render_template("auth/login.html", mode="client")


@pages_bp.route("/admin/login")
def admin_login():
    return render_template("auth/login.html", mode="admin")


@pages_bp.route("/farmer/login")
def farmer_login():
    return render_template("auth/login.html", mode="farmer")


# ----------------------
# Signed-in pages
# ----------------------
@pages_bp.route("/dashboard")
@page_role_required("client")
def dashboard():
    if current_user.profile and not current_user.profile.onboarding_completed and not current_user.has_role("farmer"):
        return redirect(url_for("pages.onboarding"))
    return render_template("dashboard/client.html")


@pages_bp.route("/invest")
@page_role_required("client")
def invest():
    return render_template("dashboard/invest.html", packages=active_packages())


@pages_bp.route("/book-visit")
@page_role_required("client")
def book_visit():
    return render_template(
        "dashboard/book_visit.html",
        time_slots=TIME_SLOTS,
        earliest_date=earliest_visit_date().isoformat(),
    )


@pages_bp.route("/onboarding")
@login_required
def onboarding():
    return render_template("onboarding/investor.html")


@pages_bp.route("/farmer-onboarding")
@login_required
def farmer_onboarding():
    if current_user.farmer is not None:
        return redirect(url_for("pages.farmer_dashboard"))
    return render_template("onboarding/farmer.html")


@pages_bp.route("/farmer-dashboard")
@page_role_required("farmer")
def farmer_dashboard():
    return render_template("dashboard/farmer.html")


@pages_bp.route("/admin")
@pages_bp.route("/admin/<section>")
@page_role_required("admin")
def admin_dashboard(section="overview"):
    return render_template("admin/dashboard.html", section=section)
