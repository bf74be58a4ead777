from django import forms
from django.core.validators import RegexValidator

from .api.schemas import (
    AddressSchema,
    OrderCreateSchema,
    QuoteInputSchema,
    TokenObtainPairInputSchema,
    UserRegisterSchema,
)

EMAIL_REGEX = r'^[^\s@]+@[^\s@]+\.[^\s@]+$'

email_validator = RegexValidator(EMAIL_REGEX, 'Please enter a valid email address')
pincode_validator = RegexValidator(r'^\d{6}$', 'Enter a valid 6-digit pincode')
gstin_validator = RegexValidator(r'^[0-9A-Za-z]{15}$', 'Enter a valid 15-character GSTIN')


def email_field(**kwargs):
    return forms.CharField(
        validators=[email_validator],
        error_messages={'required': 'Email address is required'},
        **kwargs,
    )


# ---------- Auth ----------
class LoginForm(forms.Form):
    email = email_field()
    password = forms.CharField(
        min_length=8,
        strip=False,
        widget=forms.PasswordInput,
        error_messages={
            'required': 'Password is required',
            'min_length': 'Password must be at least 8 characters',
        },
    )

    def to_schema(self):
        return TokenObtainPairInputSchema(
            email=self.cleaned_data['email'],
            password=self.cleaned_data['password'],
        )


class SignupForm(LoginForm):
    full_name = forms.CharField(error_messages={'required': 'Full name is required'})
    company_name = forms.CharField(required=False)
    confirm_password = forms.CharField(required=False, strip=False, widget=forms.PasswordInput)

    field_order = ['full_name', 'company_name', 'email', 'password', 'confirm_password']

    def clean(self):
        cleaned = super().clean()
        if self.data.get('confirm_password', '') != self.data.get('password', ''):
            self.add_error('confirm_password', 'Passwords do not match')
        return cleaned

    def to_schema(self):
        first_name, _, last_name = self.cleaned_data['full_name'].partition(' ')
        return UserRegisterSchema(
            email=self.cleaned_data['email'],
            password=self.cleaned_data['password'],
            first_name=first_name,
            last_name=last_name.strip(),
            company_name=self.cleaned_data['company_name'] or None,
        )


# ---------- Quotes ----------
class QuoteForm(forms.Form):
    name = forms.CharField(error_messages={'required': 'Name is required'})
    email = email_field()
    phone = forms.CharField(max_length=20, error_messages={'required': 'Phone number is required'})
    quantity = forms.IntegerField(min_value=1, initial=1)
    message = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 4}))

    def to_schema(self, product_id):
        return QuoteInputSchema(
            product_id=product_id,
            email=self.cleaned_data['email'],
            phone=self.cleaned_data['phone'],
            quantity=self.cleaned_data['quantity'],
            message=self.cleaned_data['message'],
        )


# ---------- Checkout ----------
class CheckoutForm(forms.Form):
    first_name = forms.CharField(max_length=100)
    last_name = forms.CharField(max_length=100)
    email = email_field()
    phone = forms.CharField(max_length=20)
    company_name = forms.CharField(max_length=255, required=False)
    gstin = forms.CharField(max_length=15, required=False, validators=[gstin_validator])

    billing_line1 = forms.CharField(max_length=255)
    billing_line2 = forms.CharField(max_length=255, required=False)
    billing_city = forms.CharField(max_length=100)
    billing_state = forms.CharField(max_length=100)
    billing_pincode = forms.CharField(validators=[pincode_validator])

    same_as_billing = forms.BooleanField(required=False, initial=True)
    shipping_line1 = forms.CharField(max_length=255, required=False)
    shipping_line2 = forms.CharField(max_length=255, required=False)
    shipping_city = forms.CharField(max_length=100, required=False)
    shipping_state = forms.CharField(max_length=100, required=False)
    shipping_pincode = forms.CharField(required=False, validators=[pincode_validator])

    save_info = forms.BooleanField(required=False)

    def clean_gstin(self):
        return self.cleaned_data['gstin'].upper()

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get('same_as_billing'):
            for field in ('line1', 'city', 'state', 'pincode'):
                if not cleaned.get(f'shipping_{field}'):
                    self.add_error(f'shipping_{field}', 'This field is required.')
        return cleaned

    def _address(self, prefix):
        data = self.cleaned_data
        return AddressSchema(
            address_line1=data[f'{prefix}_line1'],
            address_line2=data[f'{prefix}_line2'] or None,
            city=data[f'{prefix}_city'],
            state=data[f'{prefix}_state'],
            pincode=data[f'{prefix}_pincode'],
        )

    def to_schema(self, items):
        data = self.cleaned_data
        billing = self._address('billing')
        shipping = billing if data['same_as_billing'] else self._address('shipping')
        return OrderCreateSchema(
            first_name=data['first_name'],
            last_name=data['last_name'],
            email=data['email'],
            phone=data['phone'],
            company_name=data['company_name'] or None,
            gstin=data['gstin'] or None,
            billing_address=billing,
            shipping_address=shipping,
            items=items,
            save_info=data['save_info'],
        )

    @classmethod
    def initial_for(cls, user, addresses=()):
        initial = {'same_as_billing': True}
        if user:
            initial.update(
                first_name=user.first_name,
                last_name=user.last_name,
                email=user.email,
                company_name=user.company_name or '',
            )
        default = next((a for a in addresses if a.is_default), None)
        if default is None and addresses:
            default = addresses[0]
        if default is not None:
            initial.update(
                billing_line1=default.address_line1,
                billing_line2=default.address_line2 or '',
                billing_city=default.city,
                billing_state=default.state,
                billing_pincode=default.pincode,
            )
        return initial


class PaymentVerifyForm(forms.Form):
    razorpay_order_id = forms.CharField()
    razorpay_payment_id = forms.CharField()
    razorpay_signature = forms.CharField()
