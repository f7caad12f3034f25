from flask import render_template

from ..domain.models import PayableType
from ..services import subscription_service
from .common import account_user, listing_args


def index(payable_type):
    user = account_user()
    kind = PayableType(payable_type)
    page, per_page = listing_args()
    payments = subscription_service.list_transactions(user.id, kind, page=page, per_page=per_page)
    return render_template('account/transactions.html', title=f'{kind.value.title()} transactions',
                           payable_type=kind.value, payments=payments)
