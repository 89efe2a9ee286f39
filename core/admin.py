from django.contrib import admin

from .models import Category, Item, Order, OrderItem, User, WalletTransaction


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
	list_display = ("user_id", "name", "email", "role", "wallet_balance", "is_active", "created_at")
	list_filter = ("role", "is_active")
	search_fields = ("user_id", "name", "email")
	# Balance moves only through the wallet ledger; secrets only through the API
	readonly_fields = ("user_id", "wallet_balance", "qr_code", "created_at")
	exclude = ("pin", "password")


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
	list_display = ("name", "is_active")


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
	list_display = ("name", "category", "price", "is_available", "updated_at")
	list_filter = ("category", "is_available")
	search_fields = ("name",)


class OrderItemInline(admin.TabularInline):
	model = OrderItem
	extra = 0
	can_delete = False
	readonly_fields = ("item", "quantity", "price")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
	list_display = ("order_number", "token_number", "user", "total_amount", "status", "created_at")
	list_filter = ("status", "created_at")
	search_fields = ("order_number", "token_number", "user__user_id")
	inlines = [OrderItemInline]

	def has_add_permission(self, request):
		return False

	def has_change_permission(self, request, obj=None):
		# Status moves go through the kitchen workflow endpoint
		return False

	def has_delete_permission(self, request, obj=None):
		return False


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
	list_display = ("created_at", "user", "type", "amount", "status", "payment_method", "transaction_id")
	list_filter = ("type", "status", "payment_method")
	search_fields = ("user__user_id", "transaction_id", "description")

	def has_add_permission(self, request):
		return False

	def has_change_permission(self, request, obj=None):
		return False

	def has_delete_permission(self, request, obj=None):
		return False
