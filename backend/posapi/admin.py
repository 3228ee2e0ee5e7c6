from django.contrib import admin
from .models import Table, MenuItem, Ingredient, ItemIngredient, Order, OrderDetail

class ItemIngredientInline(admin.TabularInline):
    model = ItemIngredient
    extra = 1

class OrderDetailInline(admin.TabularInline):
    model = OrderDetail
    extra = 0

@admin.register(Table)
class TableAdmin(admin.ModelAdmin):
    list_display = ['number', 'capacity', 'status', 'created_at']
    list_filter = ['status']

@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'price', 'available']
    list_filter = ['category', 'available']
    search_fields = ['name', 'description']
    inlines = [ItemIngredientInline]

@admin.register(Ingredient)
class IngredientAdmin(admin.ModelAdmin):
    list_display = ['name', 'unit', 'stock_quantity', 'minimum_stock', 'low_stock']
    search_fields = ['name']

    @admin.display(boolean=True, description='Low stock')
    def low_stock(self, obj):
        return obj.is_low_stock

@admin.register(ItemIngredient)
class ItemIngredientAdmin(admin.ModelAdmin):
    list_display = ['menu_item', 'ingredient', 'quantity_needed']
    list_filter = ['menu_item']

@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'table', 'status', 'payment_status', 'payment_method', 'total_amount', 'created_at']
    list_filter = ['status', 'payment_method', 'payment_status']
    search_fields = ['table__number']
    inlines = [OrderDetailInline]

@admin.register(OrderDetail)
class OrderDetailAdmin(admin.ModelAdmin):
    list_display = ['order', 'menu_item', 'quantity', 'price', 'subtotal']
