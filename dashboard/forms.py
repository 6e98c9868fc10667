from django import forms
from django.contrib.auth.models import User

from .models import Crop, CreditFacility
from .roles import ROLE_CHOICES


# --- UserRegisterForm ---
class UserRegisterForm(forms.ModelForm):
    role = forms.ChoiceField(label='Role', choices=ROLE_CHOICES)
    password = forms.CharField(label='Password', widget=forms.PasswordInput)
    password2 = forms.CharField(label='Confirm Password', widget=forms.PasswordInput)
    email = forms.EmailField(label='Email', required=True)

    # Profile fields
    full_name = forms.CharField(label='Full Name', max_length=150)
    organization = forms.CharField(label='Organization', max_length=150, required=False)
    phone = forms.CharField(label='Phone', max_length=20, required=False)
    district = forms.CharField(label='District', max_length=100, required=False)
    state = forms.CharField(label='State', max_length=100, required=False)

    class Meta:
        model = User
        fields = ['username', 'email', 'password']

    def clean(self):
        cleaned_data = super().clean()
        password = cleaned_data.get("password")
        password2 = cleaned_data.get("password2")

        if password and password2 and password != password2:
            raise forms.ValidationError("Passwords do not match.")
        return cleaned_data


class LoginForm(forms.Form):
    username = forms.CharField(max_length=150)
    password = forms.CharField(widget=forms.PasswordInput)


# --- Crop registration (farmer) ---
class CropForm(forms.ModelForm):
    class Meta:
        model = Crop
        fields = [
            'crop_type',
            'area_hectares',
            'planting_date',
            'expected_harvest_date',
            'status',
            'district',
            'state',
        ]
        widgets = {
            'planting_date': forms.DateInput(attrs={'type': 'date'}),
            'expected_harvest_date': forms.DateInput(attrs={'type': 'date'}),
        }

    def clean_area_hectares(self):
        area = self.cleaned_data['area_hectares']
        if area <= 0:
            raise forms.ValidationError("Area must be greater than 0.")
        return area

    def clean(self):
        cleaned_data = super().clean()
        planting = cleaned_data.get('planting_date')
        expected = cleaned_data.get('expected_harvest_date')
        if planting and expected and expected < planting:
            self.add_error('expected_harvest_date', "Expected harvest cannot precede planting.")
        return cleaned_data


# --- Credit / insurance / subsidy application (farmer) ---
class CreditApplicationForm(forms.ModelForm):
    class Meta:
        model = CreditFacility
        fields = ['facility_type', 'provider', 'amount']

    def clean_amount(self):
        amount = self.cleaned_data['amount']
        if amount <= 0:
            raise forms.ValidationError("Amount must be greater than 0.")
        return amount
