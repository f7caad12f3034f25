from flask import current_app, redirect, render_template, request, url_for

from ..forms import SubscriptionForm
from ..notifications import respond
from ..services import AccountError, subscription_service
from .common import account_user, first_form_error


def _payment_methods():
    return [method for method, _label in current_app.config.get('PAYMENT_METHODS', [])]


def show_form():
    user = account_user()
    packages = subscription_service.list_packages()
    current = subscription_service.current_subscription(user.id)
    form = SubscriptionForm(packages=packages)
    if current is not None and request.method == 'GET':
        form.package_id.data = current.package_id
    return render_template('account/subscription.html', title='Subscription', form=form,
                           packages=packages, current=current,
                           pending=subscription_service.pending_subscription(user.id))


def post_form():
    user = account_user()
    form = SubscriptionForm(packages=subscription_service.list_packages())
    redirect_to = url_for('account.subscription')
    if not form.validate_on_submit():
        return respond(first_form_error(form), 'error', redirect_to=redirect_to, status=400)
    try:
        payment = subscription_service.subscribe(user, form.package_id.data, form.payment_method.data,
                                                 allowed_methods=_payment_methods())
    except AccountError as e:
        return respond(str(e), 'error', redirect_to=redirect_to, status=400)

    if payment.is_pending:
        return redirect(url_for('account.payment_success', payment_id=payment.id))
    return respond(f'You are now subscribed to {payment.package.name}.', 'success', redirect_to=redirect_to)


def payment_confirmation(payment_id):
    """GET shows the pending payment; POST records that the user has paid.

    The payment stays pending until an operator confirms it was received.
    """
    user = account_user()
    payment = subscription_service.get_user_payment(user.id, payment_id)
    if request.method == 'POST':
        if not payment.is_pending:
            return respond('This payment has already been processed.', 'error',
                           redirect_to=url_for('account.subscription'), status=400)
        current_app.logger.info(f"User {user.id} reported payment {payment.id} as sent")
        return respond(f'Thank you. Your subscription starts once payment {payment.transaction_ref} '
                       f'has been received.', 'info',
                       redirect_to=url_for('account.transactions_subscription'))
    return render_template('account/payment.html', title='Payment', payment=payment)


def payment_cancel(payment_id):
    user = account_user()
    subscription_service.get_user_payment(user.id, payment_id)
    try:
        subscription_service.cancel_payment(user.id, payment_id)
    except AccountError as e:
        return respond(str(e), 'error', redirect_to=url_for('account.subscription'), status=400)
    return respond('Your payment has been canceled.', 'info', redirect_to=url_for('account.subscription'))
