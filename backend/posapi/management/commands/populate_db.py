from django.core.management.base import BaseCommand
from posapi.models import Table, MenuItem, Ingredient, ItemIngredient, Order, OrderDetail
from decimal import Decimal
import random
from faker import Faker


INGREDIENTS = [
    # name, unit, stock_quantity, minimum_stock
    ('Milk', 'ml', Decimal('5000'), Decimal('1000')),
    ('Coffee Beans', 'g', Decimal('2000'), Decimal('500')),
    ('Tea Leaves', 'g', Decimal('800'), Decimal('200')),
    ('Chocolate Syrup', 'ml', Decimal('1500'), Decimal('300')),
    ('Sugar', 'g', Decimal('3000'), Decimal('500')),
    ('Bread', 'slice', Decimal('60'), Decimal('20')),
    ('Cheese', 'slice', Decimal('40'), Decimal('15')),
    ('Ham', 'slice', Decimal('30'), Decimal('10')),
    ('Butter', 'g', Decimal('1000'), Decimal('250')),
    ('Flour', 'g', Decimal('5000'), Decimal('1000')),
    ('Eggs', 'pcs', Decimal('48'), Decimal('12')),
    ('Ice', 'cube', Decimal('500'), Decimal('100')),
]

MENU = [
    {
        'name': 'Espresso',
        'description': 'Double shot of our house blend',
        'price': Decimal('2.50'),
        'category': 'Coffee',
        'recipe': {'Coffee Beans': Decimal('18')},
    },
    {
        'name': 'Latte',
        'description': 'Espresso with steamed milk',
        'price': Decimal('4.00'),
        'category': 'Coffee',
        'recipe': {'Milk': Decimal('200'), 'Coffee Beans': Decimal('18')},
    },
    {
        'name': 'Cappuccino',
        'description': 'Espresso topped with milk foam',
        'price': Decimal('3.80'),
        'category': 'Coffee',
        'recipe': {'Milk': Decimal('150'), 'Coffee Beans': Decimal('18')},
    },
    {
        'name': 'Mocha',
        'description': 'Espresso, chocolate and steamed milk',
        'price': Decimal('4.50'),
        'category': 'Coffee',
        'recipe': {'Milk': Decimal('180'), 'Coffee Beans': Decimal('18'), 'Chocolate Syrup': Decimal('30')},
    },
    {
        'name': 'Iced Coffee',
        'description': 'Cold brew over ice',
        'price': Decimal('3.50'),
        'category': 'Coffee',
        'recipe': {'Coffee Beans': Decimal('20'), 'Ice': Decimal('6'), 'Sugar': Decimal('10')},
    },
    {
        'name': 'Black Tea',
        'description': 'Freshly brewed loose leaf tea',
        'price': Decimal('2.00'),
        'category': 'Tea',
        'recipe': {'Tea Leaves': Decimal('5')},
    },
    {
        'name': 'Milk Tea',
        'description': 'Black tea with milk and sugar',
        'price': Decimal('2.80'),
        'category': 'Tea',
        'recipe': {'Tea Leaves': Decimal('5'), 'Milk': Decimal('100'), 'Sugar': Decimal('10')},
    },
    {
        'name': 'Hot Chocolate',
        'description': 'Rich chocolate with steamed milk',
        'price': Decimal('3.50'),
        'category': 'Drinks',
        'recipe': {'Milk': Decimal('220'), 'Chocolate Syrup': Decimal('40')},
    },
    {
        'name': 'Ham & Cheese Toastie',
        'description': 'Grilled sandwich with ham and melted cheese',
        'price': Decimal('5.50'),
        'category': 'Food',
        'recipe': {'Bread': Decimal('2'), 'Ham': Decimal('2'), 'Cheese': Decimal('2'), 'Butter': Decimal('10')},
    },
    {
        'name': 'Butter Croissant',
        'description': 'Flaky, baked every morning',
        'price': Decimal('3.00'),
        'category': 'Food',
        'recipe': {'Flour': Decimal('60'), 'Butter': Decimal('30'), 'Eggs': Decimal('1')},
    },
    {
        'name': 'Pancakes',
        'description': 'Stack of three with butter and syrup',
        'price': Decimal('6.00'),
        'category': 'Food',
        'recipe': {'Flour': Decimal('120'), 'Eggs': Decimal('2'), 'Milk': Decimal('150'), 'Butter': Decimal('15')},
    },
]


class Command(BaseCommand):
    help = 'Populate the database with a sample cafe: tables, ingredients, menu and recipes'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before populating',
        )
        parser.add_argument(
            '--tables',
            type=int,
            default=10,
            help='Number of tables to create',
        )
        parser.add_argument(
            '--orders',
            type=int,
            default=20,
            help='Number of settled (completed or cancelled) sample orders',
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Seed for reproducible sample data',
        )

    def handle(self, *args, **options):
        fake = Faker()
        if options['seed'] is not None:
            Faker.seed(options['seed'])
            random.seed(options['seed'])

        if options['clear']:
            self.stdout.write(self.style.WARNING('Clearing existing data...'))
            OrderDetail.objects.all().delete()
            Order.objects.all().delete()
            ItemIngredient.objects.all().delete()
            MenuItem.objects.all().delete()
            Ingredient.objects.all().delete()
            Table.objects.all().delete()
            self.stdout.write(self.style.SUCCESS('✓ Cleared existing data'))

        # Create tables
        self.stdout.write('Creating tables...')
        tables = []
        for number in range(1, options['tables'] + 1):
            table, created = Table.objects.get_or_create(
                number=number,
                defaults={'capacity': random.choice([2, 2, 4, 4, 6]), 'status': 'free'}
            )
            tables.append(table)
        self.stdout.write(self.style.SUCCESS(f'✓ Created {len(tables)} tables'))

        # Create ingredients
        self.stdout.write('Creating ingredients...')
        ingredients = {}
        for name, unit, stock_quantity, minimum_stock in INGREDIENTS:
            ingredient, created = Ingredient.objects.get_or_create(
                name=name,
                defaults={'unit': unit, 'stock_quantity': stock_quantity, 'minimum_stock': minimum_stock}
            )
            ingredients[name] = ingredient
        self.stdout.write(self.style.SUCCESS(f'✓ Created {len(ingredients)} ingredients'))

        # Create menu items and their recipes
        self.stdout.write('Creating menu items...')
        menu_items = []
        recipe_lines = 0
        for entry in MENU:
            item_data = dict(entry)
            recipe = item_data.pop('recipe')
            if not item_data.get('description'):
                item_data['description'] = fake.sentence(nb_words=6)
            item, created = MenuItem.objects.get_or_create(
                name=item_data['name'],
                defaults=item_data
            )
            for ingredient_name, quantity_needed in recipe.items():
                ItemIngredient.objects.get_or_create(
                    menu_item=item,
                    ingredient=ingredients[ingredient_name],
                    defaults={'quantity_needed': quantity_needed}
                )
                recipe_lines += 1
            menu_items.append(item)
        self.stdout.write(self.style.SUCCESS(f'✓ Created {len(menu_items)} menu items ({recipe_lines} recipe lines)'))

        # Settled orders only, so every table stays free.
        self.stdout.write('Creating sample orders...')
        orders_created = 0
        for _ in range(options['orders']):
            status = random.choice(['completed', 'completed', 'completed', 'cancelled'])
            order = Order.objects.create(
                table=random.choice(tables),
                status=status,
                payment_status='paid' if status == 'completed' else 'pending',
                payment_method=random.choice(['cash', 'card', 'mobile_banking']) if status == 'completed' else None,
            )

            total = Decimal('0.00')
            for menu_item in random.sample(menu_items, random.randint(1, 4)):
                quantity = random.randint(1, 3)
                subtotal = menu_item.price * quantity
                OrderDetail.objects.create(
                    order=order,
                    menu_item=menu_item,
                    quantity=quantity,
                    price=menu_item.price,
                    subtotal=subtotal,
                )
                total += subtotal

            order.total_amount = total
            order.save()
            orders_created += 1

        self.stdout.write(self.style.SUCCESS(f'✓ Created {orders_created} sample orders'))

        self.stdout.write(self.style.SUCCESS('\n✅ Database populated successfully!'))
        self.stdout.write(self.style.SUCCESS(f'\nSummary:'))
        self.stdout.write(f'  • Tables: {Table.objects.count()}')
        self.stdout.write(f'  • Ingredients: {Ingredient.objects.count()}')
        self.stdout.write(f'  • Menu Items: {MenuItem.objects.count()}')
        self.stdout.write(f'  • Recipe lines: {ItemIngredient.objects.count()}')
        self.stdout.write(f'  • Orders: {Order.objects.count()}')
        self.stdout.write(f'  • Order Details: {OrderDetail.objects.count()}')
