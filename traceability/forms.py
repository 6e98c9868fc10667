from django import forms

from dashboard.models import Crop, InventoryItem

from .models import STAGE_CHOICES


class StageRecordForm(forms.Form):
    batch_id = forms.CharField(max_length=100, label='Batch ID')
    stage = forms.ChoiceField(choices=STAGE_CHOICES, label='Stage')
    action = forms.CharField(widget=forms.Textarea(attrs={'rows': 2}), label='Action')
    district = forms.CharField(max_length=100, required=False, label='District')
    state = forms.CharField(max_length=100, required=False, label='State')
    crop = forms.ModelChoiceField(queryset=Crop.objects.none(), required=False)
    inventory = forms.ModelChoiceField(queryset=InventoryItem.objects.none(), required=False)

    def __init__(self, *args, profile=None, **kwargs):
        super().__init__(*args, **kwargs)
        # Only the actor's own crops and stock can be linked
        if profile is not None:
            self.fields['crop'].queryset = Crop.objects.filter(farmer=profile)
            self.fields['inventory'].queryset = InventoryItem.objects.filter(owner=profile)

    def clean_batch_id(self):
        batch_id = self.cleaned_data['batch_id'].strip()
        if not batch_id:
            raise forms.ValidationError("Batch ID is required.")
        return batch_id
